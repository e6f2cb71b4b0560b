from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from poulebracket.models.team import Team


class BracketMatch(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    league: str = Field(index=True)

    # Tree wiring: null parent = final. Depth 0 is the final, leaves are first round.
    parent_id: Optional[int] = Field(default=None, foreign_key="bracketmatch.id", index=True)
    depth: int = Field(default=0)
    position: int = Field(default=0)  # 0 = first feeder of the parent, 1 = second

    date: Optional[datetime] = Field(default=None)

    # Relationships
    participants: List["BracketMatchTeam"] = Relationship(
        back_populates="match", sa_relationship_kwargs={"order_by": "BracketMatchTeam.id"}
    )


class BracketMatchTeam(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    bracket_match_id: int = Field(foreign_key="bracketmatch.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    score: Optional[int] = Field(default=None)

    # Relationships
    match: "BracketMatch" = Relationship(back_populates="participants")
    team: "Team" = Relationship(back_populates="bracket_entries")
