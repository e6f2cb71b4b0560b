from poulebracket.models.bracket import BracketMatch, BracketMatchTeam
from poulebracket.models.poule import Poule, PouleMatch, PouleMatchTeam
from poulebracket.models.team import Team

__all__ = [
    "Team",
    "Poule",
    "PouleMatch",
    "PouleMatchTeam",
    "BracketMatch",
    "BracketMatchTeam",
]
