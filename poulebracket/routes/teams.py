"""
Team Management API Routes
Teams are plain records; once a team sits in a poule its league is frozen and it cannot be deleted.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from poulebracket.database import get_session
from poulebracket.models.bracket import BracketMatchTeam
from poulebracket.models.poule import PouleMatchTeam
from poulebracket.models.team import Team

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamCreateRequest(BaseModel):
    name: str
    league: str

    @field_validator("name", "league")
    @classmethod
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class TeamUpdateRequest(BaseModel):
    name: Optional[str] = None
    league: Optional[str] = None


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    league: str
    created_at: datetime


def team_in_poule(session: Session, team_id: int) -> bool:
    return session.exec(select(PouleMatchTeam).where(PouleMatchTeam.team_id == team_id)).first() is not None


def team_in_bracket(session: Session, team_id: int) -> bool:
    return session.exec(select(BracketMatchTeam).where(BracketMatchTeam.team_id == team_id)).first() is not None


# ============================================================================
# Team CRUD Endpoints
# ============================================================================


@router.get("/teams", response_model=List[TeamResponse])
def get_teams(league: Optional[str] = None, session: Session = Depends(get_session)):
    """Get all teams, optionally only those of one league"""
    query = select(Team)
    if league:
        query = query.where(Team.league == league)
    return session.exec(query.order_by(Team.id)).all()


@router.get("/teams/{team_id}", response_model=TeamResponse)
def get_team(team_id: int, session: Session = Depends(get_session)):
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


@router.post("/teams", response_model=TeamResponse, status_code=201)
def create_team(request: TeamCreateRequest, session: Session = Depends(get_session)):
    team = Team(name=request.name, league=request.league)
    session.add(team)
    session.commit()
    session.refresh(team)
    return team


@router.patch("/teams/{team_id}", response_model=TeamResponse)
def update_team(team_id: int, request: TeamUpdateRequest, session: Session = Depends(get_session)):
    """
    Update a team's name and/or league.
    The league can only change while the team is not used in a poule.
    """
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    if request.league is not None and team_in_poule(session, team_id):
        raise HTTPException(status_code=400, detail="Team is already used in a poule.")

    if request.name is not None:
        team.name = request.name
    if request.league is not None:
        team.league = request.league

    session.add(team)
    session.commit()
    session.refresh(team)
    return team


@router.delete("/teams/{team_id}", status_code=204)
def delete_team(team_id: int, session: Session = Depends(get_session)):
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    if team_in_poule(session, team_id):
        raise HTTPException(status_code=400, detail="Team is already used in a poule match.")
    if team_in_bracket(session, team_id):
        raise HTTPException(status_code=400, detail="Team is already used in a bracket match.")

    session.delete(team)
    session.commit()

    return None
