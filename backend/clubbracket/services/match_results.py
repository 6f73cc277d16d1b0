"""
Winner recording hook for knockout matches.

Score entry and win/loss rules live elsewhere; this only takes the decided side,
flags it and re-runs bracket resolution so the winner moves into the next round.
"""
import logging
from datetime import datetime
from typing import Any, Dict

from sqlmodel import Session

from clubbracket.models.match import Match, MatchStatus, SideLabel
from clubbracket.services.bracket_resolver import resolve_bracket
from clubbracket.services.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)


def record_winner(session: Session, match_id: int, side: str) -> Dict[str, Any]:
    """
    Mark `side` ("A" or "B") as the winner of a match and propagate it.

    Returns:
        Dict with match_id, stage_id, winner_side, resolved_count

    Raises:
        NotFoundError: match missing
        BadRequestError: invalid side, match already completed, or a side has no entrant yet
    """
    try:
        winner_label = SideLabel(side)
    except ValueError as e:
        raise BadRequestError(f"side must be 'A' or 'B', got {side!r}") from e

    match = session.get(Match, match_id)
    if not match:
        raise NotFoundError(f"Match {match_id} not found")
    if match.status == MatchStatus.COMPLETED:
        raise BadRequestError(f"Match {match_id} is already completed")

    sides = {s.side: s for s in match.sides}
    if set(sides) != {SideLabel.A.value, SideLabel.B.value}:
        raise BadRequestError(f"Match {match_id} does not have both sides")
    if any(not s.members for s in sides.values()):
        raise BadRequestError(f"Match {match_id} cannot be decided before both sides have entrants")

    for label, match_side in sides.items():
        match_side.is_winner = label == winner_label.value
        session.add(match_side)
    match.status = MatchStatus.COMPLETED
    match.completed_at = datetime.utcnow()
    session.add(match)
    session.commit()

    stage_id = match.stage_id
    resolved_count = resolve_bracket(session, stage_id)
    logger.info(
        "MATCH_WINNER: match_id=%s side=%s stage_id=%s resolved=%s",
        match_id,
        winner_label.value,
        stage_id,
        resolved_count,
    )
    return {
        "match_id": match_id,
        "stage_id": stage_id,
        "winner_side": winner_label.value,
        "resolved_count": resolved_count,
    }
