"""
Bracket Tree Builder: single-elimination skeleton for a knockout stage.

Creates every round up front: for size N (a power of two) there are log2(N)
rounds and N/2^r matches in round r, N-1 matches in total. Each match gets its
two empty sides (A, B). No entrant data is touched here.

Matches are returned round-major, then by match number. Slot wiring relies on
that order: round r match i is fed by round r-1 matches 2i and 2i+1.
"""

import logging
from typing import Dict, List

from sqlmodel import Session

from clubbracket.models.match import Match, MatchSide, MatchStatus, SideLabel

logger = logging.getLogger(__name__)


def is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


def next_power_of_two(value: int) -> int:
    """Smallest power of two >= value."""
    size = 1
    while size < value:
        size *= 2
    return size


def round_count(size: int) -> int:
    return size.bit_length() - 1


def bracket_shape(size: int) -> List[int]:
    """Matches per round for a bracket of `size` entrants, round 1 first."""
    if size < 2 or not is_power_of_two(size):
        raise ValueError(f"Bracket size must be a power of two >= 2, got {size}")
    return [size // (2**r) for r in range(1, round_count(size) + 1)]


def build_tree(session: Session, stage_id: int, size: int, best_of: int = 1) -> List[Match]:
    """
    Create all matches and sides for a knockout stage.

    Adds and flushes rows on the given session; the caller owns the transaction.
    """
    matches: List[Match] = []
    for round_no, matches_in_round in enumerate(bracket_shape(size), start=1):
        for match_no in range(1, matches_in_round + 1):
            match = Match(
                stage_id=stage_id,
                round_no=round_no,
                match_no=match_no,
                best_of=best_of,
                status=MatchStatus.SCHEDULED,
            )
            session.add(match)
            matches.append(match)

    # Ids are needed for sides and for MATCH_WINNER slots
    session.flush()

    for match in matches:
        session.add(MatchSide(match_id=match.id, side=SideLabel.A))
        session.add(MatchSide(match_id=match.id, side=SideLabel.B))
    session.flush()

    logger.debug("BRACKET_TREE: stage_id=%s size=%s matches=%s", stage_id, size, len(matches))
    return matches


def group_by_round(matches: List[Match]) -> Dict[int, List[Match]]:
    """Index matches as {round_no: [match_no 1, match_no 2, ...]}."""
    by_round: Dict[int, List[Match]] = {}
    for match in sorted(matches, key=lambda m: (m.round_no, m.match_no)):
        by_round.setdefault(match.round_no, []).append(match)
    return by_round
