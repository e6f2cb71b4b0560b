from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from poulebracket.models.bracket import BracketMatchTeam
    from poulebracket.models.poule import PouleMatchTeam


class Team(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    league: str = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    poule_entries: List["PouleMatchTeam"] = Relationship(back_populates="team")
    bracket_entries: List["BracketMatchTeam"] = Relationship(back_populates="team")
