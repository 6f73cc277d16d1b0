"""
Slot Assigner: wires a freshly built tree to its entrants and to itself.

Round 1: entrants 2k / 2k+1 declare sides A / B of match k+1 (SEED or GROUP_RANK).
Round r >= 2: match i declares the winners of round r-1 matches 2i (A) and 2i+1 (B).

The dependency graph is fully described by source_match_id plus this positional
rule; no other structure is stored.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session

from clubbracket.models.bracket_slot import BracketSlot, GroupRankSource, MatchWinnerSource, SeedSource, SlotSource
from clubbracket.models.match import Match, SideLabel
from clubbracket.services.bracket_tree import group_by_round
from clubbracket.services.entrant_resolver import Entrant, EntrantSourceType

logger = logging.getLogger(__name__)

# (round_no, 0-based index within round)
MatchPosition = Tuple[int, int]


def winner_feeds(shape: List[int]) -> Dict[MatchPosition, Tuple[MatchPosition, MatchPosition]]:
    """
    Positional winner-forwarding map for a bracket with `shape` matches per round.

    Returns {(round, i): ((round-1, 2i), (round-1, 2i+1))} for every round >= 2.
    """
    feeds: Dict[MatchPosition, Tuple[MatchPosition, MatchPosition]] = {}
    for round_no in range(2, len(shape) + 1):
        for i in range(shape[round_no - 1]):
            feeds[(round_no, i)] = ((round_no - 1, 2 * i), (round_no - 1, 2 * i + 1))
    return feeds


def entrant_source(entrant: Entrant, source_type: EntrantSourceType) -> SlotSource:
    if source_type == EntrantSourceType.GROUP_RANK:
        return GroupRankSource(group_id=entrant.source_group_id, rank=entrant.source_rank)
    return SeedSource(seed=entrant.source_seed, rank=entrant.source_rank, group_id=entrant.source_group_id)


def assign_slots(
    session: Session,
    matches: List[Match],
    entrants: List[Entrant],
    source_type: EntrantSourceType,
) -> List[BracketSlot]:
    """Create every BracketSlot for the tree. Caller owns the transaction."""
    by_round = group_by_round(matches)
    slots: List[BracketSlot] = []

    byes = 0
    for k, match in enumerate(by_round.get(1, [])):
        for offset, label in ((0, SideLabel.A), (1, SideLabel.B)):
            entrant: Optional[Entrant] = entrants[2 * k + offset] if 2 * k + offset < len(entrants) else None
            if entrant is None:
                byes += 1
                continue
            slots.append(BracketSlot.from_source(match.id, label, entrant_source(entrant, source_type)))

    shape = [len(by_round[r]) for r in sorted(by_round)]
    for (round_no, i), (pos_a, pos_b) in sorted(winner_feeds(shape).items()):
        target = by_round[round_no][i]
        source_a = by_round[pos_a[0]][pos_a[1]]
        source_b = by_round[pos_b[0]][pos_b[1]]
        slots.append(BracketSlot.from_source(target.id, SideLabel.A, MatchWinnerSource(match_id=source_a.id)))
        slots.append(BracketSlot.from_source(target.id, SideLabel.B, MatchWinnerSource(match_id=source_b.id)))

    for slot in slots:
        session.add(slot)
    session.flush()

    logger.debug("SLOTS_ASSIGNED: slots=%s byes=%s", len(slots), byes)
    return slots
