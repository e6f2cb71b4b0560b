"""
Poule teardown: played-match guard and removal of generated matches.
"""

import logging

from sqlmodel import Session, select

from poulebracket.models.poule import PouleMatch, PouleMatchTeam

logger = logging.getLogger(__name__)


def has_played_matches(session: Session, poule_id: int) -> bool:
    """True iff any participant of any match of the poule has a score"""
    played = session.exec(
        select(PouleMatchTeam)
        .join(PouleMatch, PouleMatchTeam.poule_match_id == PouleMatch.id)
        .where(PouleMatch.poule_id == poule_id, PouleMatchTeam.score.is_not(None))
    ).first()
    return played is not None


def delete_all_matches_and_participants(session: Session, poule_id: int, commit: bool = True) -> int:
    """Delete every match of a poule in correct order (child→parent).

    Deletes in order: PouleMatchTeams → PouleMatches
    Callers must check has_played_matches first.

    Returns:
        Number of deleted matches
    """
    matches = session.exec(select(PouleMatch).where(PouleMatch.poule_id == poule_id)).all()
    match_ids = [m.id for m in matches]

    if match_ids:
        participants = session.exec(
            select(PouleMatchTeam).where(PouleMatchTeam.poule_match_id.in_(match_ids))
        ).all()
        for participant in participants:
            session.delete(participant)

    # Flush participants before deleting matches to keep FK constraints satisfied
    session.flush()

    for match in matches:
        session.delete(match)

    session.flush()
    if commit:
        session.commit()

    logger.info("Deleted %d matches of poule %s", len(matches), poule_id)
    return len(matches)
