"""
Single-Elimination Bracket Generation

The bracket is built in two steps:
1. build_bracket_skeleton: pure recursive halving into an in-memory tree of
   BracketNode values with synthetic local ids
2. materialize_bracket: one batch write that assigns persistent ids and wires
   parent_id/depth/position on every BracketMatch

Only the empty skeleton is produced. Placing teams in first-round matches and
advancing winners toward the final are not part of generation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from sqlmodel import Session, select

from poulebracket.models.bracket import BracketMatch
from poulebracket.services.errors import TournamentValidationError

logger = logging.getLogger(__name__)


@dataclass
class BracketNode:
    """One future match of the skeleton. Children are its two feeder matches."""
    local_id: int
    depth: int
    position: int = 0
    children: List["BracketNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children


def is_power_of_two(n: int) -> bool:
    """Exactly 2^k for some k >= 0 (1, 2, 4, 8, ...)."""
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        return False
    return 2 ** round(math.log2(n)) == n


def bracket_match_count(slot_count: int) -> int:
    """A full bracket of n slots needs n - 1 matches."""
    return slot_count - 1


def build_bracket_skeleton(slot_count: int) -> Optional[BracketNode]:
    """Build the match tree for *slot_count* slots by recursive halving.

      1 slot   -> None (nothing left to play)
      2 slots  -> one first-round match
      n slots  -> one match whose two children cover n/2 slots each

    Local ids follow preorder (a parent before its left subtree, left before right),
    which is also the order materialize_bracket writes them.

    Raises:
        TournamentValidationError: slot_count is not a power of two
    """
    if not is_power_of_two(slot_count):
        raise TournamentValidationError("amount should be a power of 2")

    counter = [0]

    def _build(n: int, depth: int, position: int) -> Optional[BracketNode]:
        if n == 1:
            return None

        counter[0] += 1
        node = BracketNode(local_id=counter[0], depth=depth, position=position)
        if n == 2:
            return node

        half = n // 2
        for child_position in (0, 1):
            child = _build(half, depth + 1, child_position)
            if child is not None:
                node.children.append(child)
        return node

    return _build(slot_count, 0, 0)


def iter_preorder(root: Optional[BracketNode]) -> List[BracketNode]:
    """Flatten the skeleton, parents first."""
    if root is None:
        return []
    nodes = [root]
    for child in root.children:
        nodes.extend(iter_preorder(child))
    return nodes


def bracket_exists(session: Session, league: str) -> bool:
    return session.exec(select(BracketMatch).where(BracketMatch.league == league)).first() is not None


def materialize_bracket(
    session: Session, root: Optional[BracketNode], league: str, commit: bool = True
) -> List[BracketMatch]:
    """
    Write the skeleton as BracketMatch rows.

    Parents are written (and flushed) before their children so every child can
    reference its parent's persistent id. One transaction for the whole tree.

    Returns:
        Created matches in preorder
    """
    created: List[BracketMatch] = []

    def _write(node: BracketNode, parent: Optional[BracketMatch]) -> None:
        match = BracketMatch(
            league=league,
            parent_id=parent.id if parent is not None else None,
            depth=node.depth,
            position=node.position,
            date=None,
        )
        session.add(match)
        session.flush()
        created.append(match)
        for child in node.children:
            _write(child, match)

    if root is not None:
        _write(root, None)

    if commit:
        session.commit()
        for match in created:
            session.refresh(match)
    return created


def build_bracket(session: Session, slot_count: int, league: str) -> List[BracketMatch]:
    """
    Create the bracket of a league.

    All validation happens before anything is written:
    - league must not be blank
    - slot_count must be a power of two
    - the league must not already have a bracket (at most one per league)

    Returns:
        Created matches (slot_count - 1 of them) in preorder
    """
    if not league or not league.strip():
        raise TournamentValidationError("league should not be empty")

    root = build_bracket_skeleton(slot_count)

    if bracket_exists(session, league):
        raise TournamentValidationError("league already has a bracket")

    matches = materialize_bracket(session, root, league)
    logger.info("Created bracket for league %r: %d slots, %d matches", league, slot_count, len(matches))
    return matches
