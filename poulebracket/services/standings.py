"""
Poule standings: summed participant scores per team.

Order: total score descending, then team name ascending, then team id ascending.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from poulebracket.models.poule import PouleMatch, PouleMatchTeam


@dataclass
class TeamStanding:
    team_id: int
    name: str
    league: str
    score: int = 0
    played: int = 0


def is_played(participants: Sequence[PouleMatchTeam]) -> bool:
    """A match is played once any participant has a score."""
    return any(p.score is not None for p in participants)


def poule_standings(matches: Sequence[PouleMatch]) -> List[TeamStanding]:
    """
    Aggregate a poule's matches into one standing per team.

    Unplayed scores count as 0. Every team that appears in a match is listed,
    even before any match is played.
    """
    standings: Dict[int, TeamStanding] = {}

    for match in matches:
        played = is_played(match.participants)
        for participant in match.participants:
            standing = standings.get(participant.team_id)
            if standing is None:
                standing = TeamStanding(
                    team_id=participant.team_id,
                    name=participant.team.name,
                    league=participant.team.league,
                )
                standings[participant.team_id] = standing
            standing.score += participant.score or 0
            if played:
                standing.played += 1

    return sorted(standings.values(), key=lambda s: (-s.score, s.name, s.team_id))
