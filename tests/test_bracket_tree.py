"""
Tests for rebuilding the nested bracket from flat parent-pointer rows.
"""

import random

import pytest
from sqlmodel import Session, select

from poulebracket.models.bracket import BracketMatch, BracketMatchTeam
from poulebracket.services.bracket_builder import build_bracket
from poulebracket.services.bracket_tree import assemble_tree, count_nodes, group_rounds, load_bracket_tree
from poulebracket.services.errors import NotFoundError


def _walk(nodes):
    for node in nodes:
        yield node
        yield from _walk(node.children)


def _flat_bracket():
    """Hand-written 4-slot bracket: final 1, semis 2 and 3."""
    return [
        BracketMatch(id=1, league="A", parent_id=None, depth=0, position=0),
        BracketMatch(id=2, league="A", parent_id=1, depth=1, position=0),
        BracketMatch(id=3, league="A", parent_id=1, depth=1, position=1),
    ]


class TestAssembleTree:
    def test_empty_input(self):
        assert assemble_tree([]) == []

    def test_single_match(self):
        roots = assemble_tree([BracketMatch(id=7, league="A", parent_id=None)])
        assert len(roots) == 1
        assert roots[0].id == 7
        assert roots[0].is_leaf

    def test_four_slot_bracket(self):
        roots = assemble_tree(_flat_bracket())

        assert len(roots) == 1
        final = roots[0]
        assert final.id == 1
        assert [c.id for c in final.children] == [2, 3]
        assert all(c.is_leaf for c in final.children)

    def test_input_order_does_not_matter(self):
        matches = _flat_bracket()
        shuffled = list(reversed(matches))

        assert assemble_tree(shuffled) == assemble_tree(matches)

    def test_children_ordered_by_position_not_id(self):
        matches = [
            BracketMatch(id=1, league="A", parent_id=None, depth=0, position=0),
            BracketMatch(id=2, league="A", parent_id=1, depth=1, position=1),
            BracketMatch(id=3, league="A", parent_id=1, depth=1, position=0),
        ]
        roots = assemble_tree(matches)
        assert [c.id for c in roots[0].children] == [3, 2]

    def test_orphan_is_kept_as_root(self):
        matches = _flat_bracket() + [BracketMatch(id=9, league="A", parent_id=42, depth=1, position=0)]
        roots = assemble_tree(matches)
        assert [r.id for r in roots] == [1, 9]
        assert count_nodes(roots) == 4

    def test_unplayed_match_has_no_teams(self):
        roots = assemble_tree(_flat_bracket())
        assert all(node.teams == [] for node in _walk(roots))


class TestAssembleBuiltBracket:
    @pytest.mark.parametrize("n", [2, 4, 8, 16, 32])
    def test_inverse_of_build(self, session: Session, n):
        build_bracket(session, n, "A")
        flat = session.exec(select(BracketMatch)).all()
        random.Random(n).shuffle(flat)

        roots = assemble_tree(flat)

        assert len(roots) == 1
        assert roots[0].parent_id is None
        assert count_nodes(roots) == len(flat) == n - 1
        for node in _walk(roots):
            expected = sorted(m.id for m in flat if m.parent_id == node.id)
            assert sorted(c.id for c in node.children) == expected

    def test_participants_resolved(self, session: Session, make_teams):
        build_bracket(session, 4, "A")
        a, b = make_teams(2)
        leaf = session.exec(select(BracketMatch).where(BracketMatch.depth == 1)).first()
        session.add(BracketMatchTeam(bracket_match_id=leaf.id, team_id=a.id, score=3))
        session.add(BracketMatchTeam(bracket_match_id=leaf.id, team_id=b.id))
        session.commit()

        roots = load_bracket_tree(session, "A")

        node = next(n for n in _walk(roots) if n.id == leaf.id)
        assert [(t.team_id, t.name, t.league, t.score) for t in node.teams] == [
            (a.id, "Team 1", "A", 3),
            (b.id, "Team 2", "A", None),
        ]

    def test_load_missing_league(self, session: Session):
        build_bracket(session, 4, "A")
        with pytest.raises(NotFoundError, match="No bracket exists"):
            load_bracket_tree(session, "B")


class TestGroupRounds:
    def test_eight_slot_rounds(self, session: Session):
        build_bracket(session, 8, "A")
        rounds = group_rounds(load_bracket_tree(session, "A"))

        assert [len(r) for r in rounds] == [4, 2, 1]
        assert rounds[-1][0].parent_id is None
        assert all(node.is_leaf for node in rounds[0])

    def test_rounds_keep_left_to_right_order(self):
        rounds = group_rounds(assemble_tree(_flat_bracket()))
        assert [[n.id for n in r] for r in rounds] == [[2, 3], [1]]

    def test_no_rounds_for_empty_tree(self):
        assert group_rounds([]) == []
