"""
Tests for the played-match guard and poule teardown.
"""

from sqlmodel import Session, select

from poulebracket.models.poule import Poule, PouleMatch, PouleMatchTeam
from poulebracket.services.poule_scheduler import generate_round_robin
from poulebracket.services.poule_teardown import delete_all_matches_and_participants, has_played_matches


def _poule_with_round_robin(session: Session, teams, name: str = "Poule A") -> Poule:
    poule = Poule(name=name, league="A")
    session.add(poule)
    session.commit()
    session.refresh(poule)
    generate_round_robin(session, [t.id for t in teams], poule)
    return poule


def test_fresh_poule_not_played(session: Session, make_teams):
    poule = _poule_with_round_robin(session, make_teams(4))
    assert has_played_matches(session, poule.id) is False


def test_one_score_marks_poule_played(session: Session, make_teams):
    poule = _poule_with_round_robin(session, make_teams(4))

    participant = session.exec(select(PouleMatchTeam)).first()
    participant.score = 0
    session.add(participant)
    session.commit()

    assert has_played_matches(session, poule.id) is True


def test_played_guard_is_scoped_to_poule(session: Session, make_teams):
    teams = make_teams(4)
    poule_a = _poule_with_round_robin(session, teams[:2], name="A")
    poule_b = _poule_with_round_robin(session, teams[2:], name="B")

    match_a = session.exec(select(PouleMatch).where(PouleMatch.poule_id == poule_a.id)).first()
    match_a.participants[0].score = 3
    session.add(match_a.participants[0])
    session.commit()

    assert has_played_matches(session, poule_a.id) is True
    assert has_played_matches(session, poule_b.id) is False


def test_delete_all_matches_and_participants(session: Session, make_teams):
    teams = make_teams(6)
    poule_a = _poule_with_round_robin(session, teams[:3], name="A")
    poule_b = _poule_with_round_robin(session, teams[3:], name="B")

    deleted = delete_all_matches_and_participants(session, poule_a.id)

    assert deleted == 3
    assert session.exec(select(PouleMatch).where(PouleMatch.poule_id == poule_a.id)).all() == []
    # Other poule untouched
    remaining = session.exec(select(PouleMatch).where(PouleMatch.poule_id == poule_b.id)).all()
    assert len(remaining) == 3
    assert len(session.exec(select(PouleMatchTeam)).all()) == 6


def test_delete_empty_poule(session: Session):
    poule = Poule(name="Empty", league="A")
    session.add(poule)
    session.commit()
    session.refresh(poule)

    assert delete_all_matches_and_participants(session, poule.id) == 0


def test_teardown_then_regenerate(session: Session, make_teams):
    teams = make_teams(4)
    poule = _poule_with_round_robin(session, teams[:3])

    delete_all_matches_and_participants(session, poule.id, commit=False)
    matches = generate_round_robin(session, [t.id for t in teams], poule)

    assert len(matches) == 6
    stored = session.exec(select(PouleMatch).where(PouleMatch.poule_id == poule.id)).all()
    assert {m.id for m in stored} == {m.id for m in matches}
    assert len(session.exec(select(PouleMatchTeam)).all()) == 12
