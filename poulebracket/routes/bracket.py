"""
Bracket API Routes
One single-elimination bracket per league. Reads return the reconstructed tree.

Winner advancement (filling a parent match with the winners of its two feeders)
is not implemented: a finished match does not change its parent.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from poulebracket.database import get_session
from poulebracket.models.bracket import BracketMatch, BracketMatchTeam
from poulebracket.services.bracket_builder import build_bracket
from poulebracket.services.bracket_tree import MatchNode, group_rounds, load_bracket_tree
from poulebracket.services.errors import NotFoundError, TournamentValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class BracketCreateRequest(BaseModel):
    amount: int
    league: str

    @field_validator("league")
    @classmethod
    def validate_league(cls, v):
        return v.strip()


class BracketCreateResponse(BaseModel):
    message: str
    match_count: int


class BracketMatchUpdateRequest(BaseModel):
    date: Optional[datetime] = None


class ParticipantScoreUpdate(BaseModel):
    score: Optional[int] = None


class BracketParticipantResponse(BaseModel):
    id: int
    name: str
    league: str
    score: Optional[int] = None


class MatchNodeResponse(BaseModel):
    id: int
    league: str
    date: Optional[datetime] = None
    depth: int
    position: int
    parent_id: Optional[int] = None
    teams: List[BracketParticipantResponse]
    children: List["MatchNodeResponse"] = []


MatchNodeResponse.model_rebuild()


class BracketMatchResponse(BaseModel):
    id: int
    league: str
    date: Optional[datetime] = None
    depth: int
    position: int
    parent_id: Optional[int] = None
    teams: List[BracketParticipantResponse]


class BracketParticipantScoreResponse(BaseModel):
    id: int
    bracket_match_id: int
    team_id: int
    score: Optional[int] = None


def _node_response(node: MatchNode, with_children: bool = True) -> MatchNodeResponse:
    return MatchNodeResponse(
        id=node.id,
        league=node.league,
        date=node.date,
        depth=node.depth,
        position=node.position,
        parent_id=node.parent_id,
        teams=[
            BracketParticipantResponse(id=t.team_id, name=t.name, league=t.league, score=t.score)
            for t in node.teams
        ],
        children=[_node_response(c) for c in node.children] if with_children else [],
    )


def _bracket_match_response(match: BracketMatch) -> BracketMatchResponse:
    return BracketMatchResponse(
        id=match.id,
        league=match.league,
        date=match.date,
        depth=match.depth,
        position=match.position,
        parent_id=match.parent_id,
        teams=[
            BracketParticipantResponse(id=p.team_id, name=p.team.name, league=p.team.league, score=p.score)
            for p in match.participants
        ],
    )


def _load_tree_or_404(session: Session, league: str) -> List[MatchNode]:
    try:
        return load_bracket_tree(session, league)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/bracket/{league}/matches", response_model=List[MatchNodeResponse])
def get_bracket_matches(league: str, session: Session = Depends(get_session)):
    """Root matches of the league's bracket; walk `children` for earlier rounds"""
    return [_node_response(root) for root in _load_tree_or_404(session, league)]


@router.get("/bracket/{league}/rounds", response_model=List[List[MatchNodeResponse]])
def get_bracket_rounds(league: str, session: Session = Depends(get_session)):
    """The bracket as rounds, first round first and the final last (children omitted)"""
    rounds = group_rounds(_load_tree_or_404(session, league))
    return [[_node_response(node, with_children=False) for node in round_nodes] for round_nodes in rounds]


@router.post("/bracket", response_model=BracketCreateResponse, status_code=201)
def create_bracket(request: BracketCreateRequest, session: Session = Depends(get_session)):
    """
    Create the empty bracket skeleton for a league.

    Rules:
    - league must not be empty
    - amount must be a power of 2
    - a league has at most one bracket
    """
    try:
        matches = build_bracket(session, request.amount, request.league)
    except TournamentValidationError as e:
        logger.warning("Rejected bracket for league %r (amount=%s): %s", request.league, request.amount, e)
        raise HTTPException(status_code=400, detail=str(e))

    return BracketCreateResponse(message="created", match_count=len(matches))


@router.patch("/bracket/matches/{match_id}", response_model=BracketMatchResponse)
def update_bracket_match(
    match_id: int, request: BracketMatchUpdateRequest, session: Session = Depends(get_session)
):
    """Set the play date of a bracket match. Does not advance any team."""
    match = session.get(BracketMatch, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Bracket match not found")

    if "date" in request.model_fields_set:
        match.date = request.date
        session.add(match)
        session.commit()
        session.refresh(match)

    return _bracket_match_response(match)


@router.patch(
    "/bracket/matches/{match_id}/teams/{team_id}", response_model=BracketParticipantScoreResponse
)
def update_bracket_match_team(
    match_id: int, team_id: int, request: ParticipantScoreUpdate, session: Session = Depends(get_session)
):
    participant = session.exec(
        select(BracketMatchTeam).where(
            BracketMatchTeam.bracket_match_id == match_id, BracketMatchTeam.team_id == team_id
        )
    ).first()
    if not participant:
        raise HTTPException(status_code=404, detail=f"Team with id {team_id} not found in match {match_id}.")

    if "score" in request.model_fields_set:
        participant.score = request.score
        session.add(participant)
        session.commit()
        session.refresh(participant)

    return BracketParticipantScoreResponse(
        id=participant.id,
        bracket_match_id=participant.bracket_match_id,
        team_id=participant.team_id,
        score=participant.score,
    )
