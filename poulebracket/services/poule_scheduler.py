"""
Poule Round Robin Generation

Every team of a poule plays every other team exactly once.
Pair order is deterministic: for each team at position i, pair it with
every team at position j > i, in the order the roster was supplied.
"""

import logging
from typing import List, Sequence, Tuple

from sqlmodel import Session

from poulebracket.models.poule import Poule, PouleMatch, PouleMatchTeam
from poulebracket.services.errors import TournamentValidationError

logger = logging.getLogger(__name__)


def round_robin_match_count(n: int) -> int:
    """Round robin match count: n * (n-1) / 2"""
    return (n * (n - 1)) // 2


def round_robin_pairs(team_ids: Sequence[int]) -> List[Tuple[int, int]]:
    """
    All unordered pairings of the roster, each exactly once.

    Args:
        team_ids: Unique team identifiers in the order they were supplied

    Returns:
        List of (team_a_id, team_b_id) tuples, n*(n-1)/2 of them

    Raises:
        TournamentValidationError: fewer than 2 teams, or a team listed twice
    """
    ids = list(team_ids)
    if len(ids) < 2:
        raise TournamentValidationError("At least 2 teams are required.")

    seen = set()
    for team_id in ids:
        if team_id in seen:
            raise TournamentValidationError(f"Team with id {team_id} is listed more than once.")
        seen.add(team_id)

    pairs: List[Tuple[int, int]] = []
    for i in range(len(ids)):
        for j in range(i + 1, len(ids)):
            pairs.append((ids[i], ids[j]))
    return pairs


def generate_round_robin(
    session: Session, team_ids: Sequence[int], poule: Poule, commit: bool = True
) -> List[PouleMatch]:
    """
    Persist the round robin of a poule: one match and two participant rows per pairing.

    Matches start unscheduled (date null) and participants unplayed (score null).
    Writes are sequential; the match is flushed first so its id can be referenced
    by the participant rows. The whole batch is one transaction.

    Args:
        session: Database session
        team_ids: Roster of the poule, validated by round_robin_pairs
        poule: Persisted poule the matches belong to
        commit: If False, the caller owns the transaction (teardown + regenerate)

    Returns:
        Created matches (with ids) in pairing order
    """
    pairs = round_robin_pairs(team_ids)

    matches: List[PouleMatch] = []
    for team_a_id, team_b_id in pairs:
        match = PouleMatch(poule_id=poule.id, date=None)
        session.add(match)
        session.flush()

        session.add(PouleMatchTeam(poule_match_id=match.id, team_id=team_a_id, score=None))
        session.add(PouleMatchTeam(poule_match_id=match.id, team_id=team_b_id, score=None))
        matches.append(match)

    session.flush()
    if commit:
        session.commit()

    for match in matches:
        session.refresh(match)

    logger.info(
        "Generated %d round robin matches for poule %s (%d teams)", len(matches), poule.id, len(team_ids)
    )
    return matches
