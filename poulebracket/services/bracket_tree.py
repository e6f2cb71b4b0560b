"""
Bracket tree reconstruction.

Bracket matches are stored flat, each pointing at its parent. The read side
rebuilds the nested tree with an explicit id -> node map followed by one
parent-pointer pass, so the result does not depend on the order rows come
back from the database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select

from poulebracket.models.bracket import BracketMatch
from poulebracket.services.errors import NotFoundError


@dataclass
class ParticipantSummary:
    team_id: int
    name: str
    league: str
    score: Optional[int] = None


@dataclass
class MatchNode:
    """A bracket match decorated with its teams and its (0 or 2) feeder matches."""
    id: int
    league: str
    date: Optional[datetime]
    depth: int
    position: int
    parent_id: Optional[int]
    teams: List[ParticipantSummary] = field(default_factory=list)
    children: List["MatchNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children


def _summarize_participants(match: BracketMatch) -> List[ParticipantSummary]:
    return [
        ParticipantSummary(
            team_id=participant.team_id,
            name=participant.team.name if participant.team else "",
            league=participant.team.league if participant.team else match.league,
            score=participant.score,
        )
        for participant in match.participants
    ]


def assemble_tree(matches: Sequence[BracketMatch]) -> List[MatchNode]:
    """
    Rebuild the nested bracket from flat parent-pointer records.

    Args:
        matches: Every bracket match of one league, in any order

    Returns:
        Root nodes ordered by id. A complete bracket has exactly one root (the
        final); a match whose parent is absent from the input is also returned
        as a root so a partial bracket is never silently dropped.

    Children of each node are ordered by (position, id).
    """
    nodes: Dict[int, MatchNode] = {}
    for match in matches:
        nodes[match.id] = MatchNode(
            id=match.id,
            league=match.league,
            date=match.date,
            depth=match.depth,
            position=match.position,
            parent_id=match.parent_id,
            teams=_summarize_participants(match),
        )

    roots: List[MatchNode] = []
    for node in nodes.values():
        parent = nodes.get(node.parent_id) if node.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    for node in nodes.values():
        node.children.sort(key=lambda n: (n.position, n.id))
    roots.sort(key=lambda n: n.id)
    return roots


def load_bracket_tree(session: Session, league: str) -> List[MatchNode]:
    """
    Load and assemble the bracket of a league.

    Raises:
        NotFoundError: the league has no bracket matches
    """
    matches = session.exec(
        select(BracketMatch).where(BracketMatch.league == league).order_by(BracketMatch.id)
    ).all()
    if not matches:
        raise NotFoundError("No bracket exists for this league")
    return assemble_tree(matches)


def group_rounds(roots: Sequence[MatchNode]) -> List[List[MatchNode]]:
    """
    Group the tree into rounds, first round first and the final last.

    A round is every node at the same distance from its root; within a round,
    nodes keep left-to-right tree order.
    """
    levels: List[List[MatchNode]] = []
    current = list(roots)
    while current:
        levels.append(current)
        current = [child for node in current for child in node.children]
    levels.reverse()
    return levels


def count_nodes(roots: Sequence[MatchNode]) -> int:
    return sum(1 + count_nodes(node.children) for node in roots)
