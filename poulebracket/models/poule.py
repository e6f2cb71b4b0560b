from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from poulebracket.models.team import Team


class Poule(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    league: str = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    matches: List["PouleMatch"] = Relationship(
        back_populates="poule", sa_relationship_kwargs={"order_by": "PouleMatch.id"}
    )


class PouleMatch(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    poule_id: int = Field(foreign_key="poule.id", index=True)
    date: Optional[datetime] = Field(default=None)  # null = not scheduled/played yet

    # Relationships
    poule: "Poule" = Relationship(back_populates="matches")
    participants: List["PouleMatchTeam"] = Relationship(
        back_populates="match", sa_relationship_kwargs={"order_by": "PouleMatchTeam.id"}
    )


class PouleMatchTeam(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    poule_match_id: int = Field(foreign_key="poulematch.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    score: Optional[int] = Field(default=None)  # null = not played

    # Relationships
    match: "PouleMatch" = Relationship(back_populates="participants")
    team: "Team" = Relationship(back_populates="poule_entries")
