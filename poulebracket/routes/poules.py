"""
Poule API Routes
Creating a poule generates its round robin; changing the roster tears it down and
regenerates it, which is refused once any match has a score.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from poulebracket.database import get_session
from poulebracket.models.poule import Poule, PouleMatch, PouleMatchTeam
from poulebracket.models.team import Team
from poulebracket.services.errors import TournamentValidationError
from poulebracket.services.poule_scheduler import generate_round_robin, round_robin_pairs
from poulebracket.services.poule_teardown import delete_all_matches_and_participants, has_played_matches
from poulebracket.services.standings import poule_standings

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class PouleCreateRequest(BaseModel):
    name: str
    league: str
    teams: List[int]

    @field_validator("name", "league")
    @classmethod
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class PouleUpdateRequest(BaseModel):
    name: Optional[str] = None
    teams: Optional[List[int]] = None


class PouleMatchUpdateRequest(BaseModel):
    date: datetime
    scores: Dict[int, Optional[int]] = {}


class ParticipantScoreUpdate(BaseModel):
    score: Optional[int] = None


class StandingResponse(BaseModel):
    id: int
    name: str
    league: str
    score: int
    played: int


class PouleSummaryResponse(BaseModel):
    id: int
    name: str
    league: str
    teams: List[StandingResponse]


class PouleDetailResponse(PouleSummaryResponse):
    matches: str


class ParticipantResponse(BaseModel):
    id: int
    name: str
    league: str
    score: Optional[int] = None


class PouleMatchResponse(BaseModel):
    id: int
    poule_id: int
    date: Optional[datetime] = None
    teams: List[ParticipantResponse]


class PouleWithMatchesResponse(BaseModel):
    id: int
    name: str
    league: str
    matches: List[PouleMatchResponse]


def _participant_response(participant: PouleMatchTeam) -> ParticipantResponse:
    return ParticipantResponse(
        id=participant.team_id,
        name=participant.team.name,
        league=participant.team.league,
        score=participant.score,
    )


def _match_response(match: PouleMatch) -> PouleMatchResponse:
    return PouleMatchResponse(
        id=match.id,
        poule_id=match.poule_id,
        date=match.date,
        teams=[_participant_response(p) for p in match.participants],
    )


def _standings_response(poule: Poule) -> List[StandingResponse]:
    return [
        StandingResponse(id=s.team_id, name=s.name, league=s.league, score=s.score, played=s.played)
        for s in poule_standings(poule.matches)
    ]


def _poule_with_matches(poule: Poule, matches: List[PouleMatch]) -> PouleWithMatchesResponse:
    return PouleWithMatchesResponse(
        id=poule.id,
        name=poule.name,
        league=poule.league,
        matches=[_match_response(m) for m in matches],
    )


def _get_poule_or_404(session: Session, poule_id: int) -> Poule:
    poule = session.get(Poule, poule_id)
    if not poule:
        raise HTTPException(status_code=404, detail="Poule not found")
    return poule


def _get_poule_match_or_404(session: Session, poule_id: int, match_id: int) -> PouleMatch:
    match = session.exec(
        select(PouleMatch).where(PouleMatch.id == match_id, PouleMatch.poule_id == poule_id)
    ).first()
    if not match:
        raise HTTPException(status_code=404, detail=f"Match with id {match_id} not found in poule {poule_id}.")
    return match


def _validate_roster(session: Session, team_ids: List[int], poule_id: Optional[int] = None) -> None:
    """
    Check a roster before anything is written.

    Raises:
        HTTPException 400: fewer than 2 teams, duplicates, unknown team,
                           or team already assigned to another poule
    """
    try:
        round_robin_pairs(team_ids)
    except TournamentValidationError as e:
        logger.warning("Rejected poule roster %s: %s", team_ids, e)
        raise HTTPException(status_code=400, detail=str(e))

    for team_id in team_ids:
        if not session.get(Team, team_id):
            raise HTTPException(status_code=400, detail=f"Team with id {team_id} does not exist.")

        assigned_query = (
            select(PouleMatchTeam)
            .join(PouleMatch, PouleMatchTeam.poule_match_id == PouleMatch.id)
            .where(PouleMatchTeam.team_id == team_id)
        )
        if poule_id is not None:
            assigned_query = assigned_query.where(PouleMatch.poule_id != poule_id)
        if session.exec(assigned_query).first():
            raise HTTPException(
                status_code=400, detail=f"Team with id {team_id} is already assigned to another pool."
            )


# ============================================================================
# Read Endpoints
# ============================================================================


@router.get("/poules", response_model=List[PouleSummaryResponse])
def get_poules(league: Optional[str] = None, session: Session = Depends(get_session)):
    """Get poules with their teams' summed scores, highest first"""
    query = select(Poule)
    if league:
        query = query.where(Poule.league == league)
    poules = session.exec(query.order_by(Poule.id)).all()

    return [
        PouleSummaryResponse(id=p.id, name=p.name, league=p.league, teams=_standings_response(p))
        for p in poules
    ]


# Declared before /poules/{poule_id} so "matches" is not parsed as a poule id
@router.get("/poules/matches", response_model=List[PouleMatchResponse])
def get_recent_poule_matches(
    count: Optional[int] = None, league: Optional[str] = None, session: Session = Depends(get_session)
):
    """Most recently dated poule matches of a league, newest first"""
    if not count:
        return []

    query = (
        select(PouleMatch)
        .join(Poule, PouleMatch.poule_id == Poule.id)
        .where(PouleMatch.date.is_not(None))
    )
    if league:
        query = query.where(Poule.league == league)
    matches = session.exec(query.order_by(PouleMatch.date.desc(), PouleMatch.id.desc()).limit(count)).all()

    return [_match_response(m) for m in matches]


@router.get("/poules/{poule_id}", response_model=PouleDetailResponse)
def get_poule(poule_id: int, session: Session = Depends(get_session)):
    poule = _get_poule_or_404(session, poule_id)
    return PouleDetailResponse(
        id=poule.id,
        name=poule.name,
        league=poule.league,
        teams=_standings_response(poule),
        matches=f"/poules/{poule.id}/matches",
    )


@router.get("/poules/{poule_id}/matches", response_model=List[PouleMatchResponse])
def get_poule_matches(poule_id: int, session: Session = Depends(get_session)):
    poule = _get_poule_or_404(session, poule_id)
    return [_match_response(m) for m in poule.matches]


@router.get("/poules/{poule_id}/matches/{match_id}", response_model=PouleMatchResponse)
def get_poule_match(poule_id: int, match_id: int, session: Session = Depends(get_session)):
    return _match_response(_get_poule_match_or_404(session, poule_id, match_id))


# ============================================================================
# Write Endpoints
# ============================================================================


@router.post("/poules", response_model=PouleWithMatchesResponse, status_code=201)
def create_poule(request: PouleCreateRequest, session: Session = Depends(get_session)):
    """
    Create a poule and its full round robin in one transaction.

    Rules:
    - At least 2 teams, no duplicates
    - Every team must exist
    - No team may already play in another poule
    """
    _validate_roster(session, request.teams)

    poule = Poule(name=request.name, league=request.league)
    session.add(poule)
    session.flush()

    matches = generate_round_robin(session, request.teams, poule)
    session.refresh(poule)
    return _poule_with_matches(poule, matches)


@router.patch("/poules/{poule_id}", response_model=PouleWithMatchesResponse)
def update_poule(poule_id: int, request: PouleUpdateRequest, session: Session = Depends(get_session)):
    """
    Rename a poule and/or replace its roster.

    A new roster tears down every generated match and regenerates the round robin,
    atomically. Refused once any match of the poule has been played.
    """
    poule = _get_poule_or_404(session, poule_id)

    if request.teams is not None:
        _validate_roster(session, request.teams, poule_id=poule_id)
        if has_played_matches(session, poule_id):
            logger.warning("Refused to regenerate poule %s: matches already played", poule_id)
            raise HTTPException(status_code=400, detail="Matches have already been played.")

    if request.name is not None:
        poule.name = request.name
        session.add(poule)

    if request.teams is not None:
        delete_all_matches_and_participants(session, poule_id, commit=False)
        matches = generate_round_robin(session, request.teams, poule)
    else:
        session.commit()
        matches = list(poule.matches)

    session.refresh(poule)
    return _poule_with_matches(poule, matches)


@router.patch("/poules/{poule_id}/matches/{match_id}", response_model=PouleMatchResponse)
def update_poule_match(
    poule_id: int, match_id: int, request: PouleMatchUpdateRequest, session: Session = Depends(get_session)
):
    """Register when a match was played and, optionally, the scores per team id"""
    match = _get_poule_match_or_404(session, poule_id, match_id)

    by_team = {p.team_id: p for p in match.participants}
    for team_id in request.scores:
        if team_id not in by_team:
            raise HTTPException(
                status_code=400,
                detail=f"{team_id} is not a player in the match {match_id} in pool {poule_id}",
            )

    match.date = request.date
    session.add(match)
    for team_id, score in request.scores.items():
        participant = by_team[team_id]
        participant.score = score
        session.add(participant)

    session.commit()
    session.refresh(match)
    return _match_response(match)


@router.patch("/poules/{poule_id}/matches/{match_id}/teams/{team_id}", response_model=ParticipantResponse)
def update_poule_match_team(
    poule_id: int,
    match_id: int,
    team_id: int,
    request: ParticipantScoreUpdate,
    session: Session = Depends(get_session),
):
    """Set (or clear, with an explicit null) one team's score in a poule match"""
    participant = session.exec(
        select(PouleMatchTeam)
        .join(PouleMatch, PouleMatchTeam.poule_match_id == PouleMatch.id)
        .where(
            PouleMatchTeam.poule_match_id == match_id,
            PouleMatchTeam.team_id == team_id,
            PouleMatch.poule_id == poule_id,
        )
    ).first()
    if not participant:
        raise HTTPException(
            status_code=404,
            detail=f"Team with id {team_id} not found in match {match_id} in poule {poule_id}.",
        )

    if "score" in request.model_fields_set:
        participant.score = request.score
        session.add(participant)
        session.commit()
        session.refresh(participant)

    return _participant_response(participant)


@router.delete("/poules/{poule_id}", status_code=204)
def delete_poule(poule_id: int, session: Session = Depends(get_session)):
    """Delete a poule with its matches; refused once any match has been played"""
    poule = _get_poule_or_404(session, poule_id)

    if has_played_matches(session, poule_id):
        logger.warning("Refused to delete poule %s: matches already played", poule_id)
        raise HTTPException(status_code=400, detail="Matches have already been played.")

    delete_all_matches_and_participants(session, poule_id, commit=False)
    session.delete(poule)
    session.commit()

    return None
