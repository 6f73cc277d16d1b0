"""
Bracket Service: generate, read and resolve knockout brackets for a stage.

Generation pipeline (single transaction):
1. Validate stage (exists, KNOCKOUT, no matches yet)
2. Resolve entrants + size (all input validation, no writes)
3. Build tree (matches + sides)
4. Persist seeds (CUSTOM / RANDOM)
5. Assign slots (round 1 from entrants, later rounds from earlier winners)
6. Commit, then resolve whatever is already resolvable
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from clubbracket.models.bracket_slot import BracketSlot, BracketSourceType
from clubbracket.models.match import Match, MatchSide, MatchSideMember, MatchStatus, SideLabel
from clubbracket.models.participant import TournamentParticipant
from clubbracket.models.stage import Stage, StageType
from clubbracket.services.bracket_resolver import resolve_bracket
from clubbracket.services.bracket_tree import build_tree
from clubbracket.services.entrant_resolver import (
    BracketOptions,
    Entrant,
    EntrantResolution,
    EntrantSourceType,
    resolve_entrants,
)
from clubbracket.services.errors import BadRequestError, NotFoundError
from clubbracket.services.slot_assigner import assign_slots
from clubbracket.utils.sql import count_where

logger = logging.getLogger(__name__)


def require_stage(session: Session, stage_id: int) -> Stage:
    stage = session.get(Stage, stage_id)
    if not stage:
        raise NotFoundError(f"Stage {stage_id} not found")
    return stage


def require_knockout_stage(session: Session, stage_id: int) -> Stage:
    stage = require_stage(session, stage_id)
    if stage.type != StageType.KNOCKOUT:
        raise BadRequestError(f"Stage {stage_id} is not a knockout stage")
    return stage


def stage_match_count(session: Session, stage_id: int) -> int:
    return count_where(session, Match.id, Match.stage_id == stage_id)


def persist_seeds(session: Session, tournament_id: int, entrants: List[Entrant]) -> None:
    """Write entrant seeds; clear the seed of every other participant in the tournament."""
    seed_by_participant = {
        e.tournament_participant_id: (e.source_seed if e.source_seed is not None else idx)
        for idx, e in enumerate(entrants, start=1)
    }
    participants = session.exec(
        select(TournamentParticipant).where(TournamentParticipant.tournament_id == tournament_id)
    ).all()
    for participant in participants:
        participant.seed = seed_by_participant.get(participant.id)
        session.add(participant)
    session.flush()


def write_bracket(session: Session, stage: Stage, resolution: EntrantResolution, best_of: int) -> List[Match]:
    """Tree + seeds + slots for a validated resolution. Caller owns the transaction."""
    matches = build_tree(session, stage.id, resolution.size, best_of)
    if resolution.source_type in (EntrantSourceType.CUSTOM, EntrantSourceType.RANDOM):
        persist_seeds(session, stage.tournament_id, resolution.entrants)
    assign_slots(session, matches, resolution.entrants, resolution.source_type)
    return matches


def prepare_generation(
    session: Session, stage_id: int, options: BracketOptions
) -> Tuple[Stage, EntrantResolution]:
    """Every check generation needs, with no writes."""
    stage = require_knockout_stage(session, stage_id)

    if stage_match_count(session, stage.id) > 0:
        raise BadRequestError(f"Stage {stage.id} already has matches; a bracket can only be generated once")

    if options.best_of is not None and options.best_of < 1:
        raise BadRequestError("best_of must be >= 1")

    resolution = resolve_entrants(session, stage, options)
    return stage, resolution


def generate_bracket(session: Session, stage_id: int, options: BracketOptions, commit: bool = True) -> Dict[str, Any]:
    """
    Build the full knockout tree for a stage and wire its slots.

    With commit=False the writes are only flushed (used by draw apply, which
    commits once for the whole draw).

    Returns:
        Dict with stage_id, source_type, size, rounds, matches_created, entrants, resolved

    Raises:
        NotFoundError: stage missing
        BadRequestError: validation failed (nothing written)
    """
    stage, resolution = prepare_generation(session, stage_id, options)
    best_of = options.best_of or 1

    try:
        matches = write_bracket(session, stage, resolution, best_of)
        if commit:
            session.commit()
        else:
            session.flush()
    except IntegrityError as e:
        session.rollback()
        logger.warning("BRACKET_GENERATE: stage_id=%s integrity error, rolled back: %s", stage_id, e)
        raise BadRequestError(f"Stage {stage_id} already has matches; a bracket can only be generated once") from e
    except Exception:
        session.rollback()
        logger.exception("BRACKET_GENERATE: stage_id=%s failed, transaction rolled back", stage_id)
        raise

    resolved = resolve_bracket(session, stage_id, commit=commit)

    logger.info(
        "BRACKET_GENERATE: stage_id=%s source_type=%s size=%s matches=%s entrants=%s resolved=%s",
        stage_id,
        resolution.source_type.value,
        resolution.size,
        len(matches),
        len(resolution.entrants),
        resolved,
    )
    return {
        "stage_id": stage_id,
        "source_type": resolution.source_type.value,
        "size": resolution.size,
        "rounds": resolution.rounds,
        "matches_created": len(matches),
        "entrants": [e.tournament_participant_id for e in resolution.entrants],
        "resolved": resolved,
    }


def resolve_stage(session: Session, stage_id: int) -> int:
    require_stage(session, stage_id)
    return resolve_bracket(session, stage_id)


def _participant_view(participant: Optional[TournamentParticipant], participant_id: int) -> Dict[str, Any]:
    return {
        "id": participant_id,
        "display_name": participant.display_name if participant else None,
    }


def get_bracket(session: Session, stage_id: int) -> Dict[str, Any]:
    """
    Read-only projection of a stage's bracket for rendering.

    Matches ordered by round then match number; slots ordered by target
    round, match number, side.
    """
    stage = require_stage(session, stage_id)

    matches = session.exec(
        select(Match).where(Match.stage_id == stage.id).order_by(Match.round_no, Match.match_no)
    ).all()
    match_ids = [m.id for m in matches]
    position = {m.id: (m.round_no, m.match_no) for m in matches}

    sides = session.exec(select(MatchSide).where(MatchSide.match_id.in_(match_ids))).all() if match_ids else []
    side_ids = [s.id for s in sides]
    members = (
        session.exec(
            select(MatchSideMember).where(MatchSideMember.match_side_id.in_(side_ids)).order_by(MatchSideMember.id)
        ).all()
        if side_ids
        else []
    )
    participant_ids = {m.tournament_participant_id for m in members}
    participants = (
        {
            p.id: p
            for p in session.exec(
                select(TournamentParticipant).where(TournamentParticipant.id.in_(participant_ids))
            ).all()
        }
        if participant_ids
        else {}
    )

    members_by_side: Dict[int, List[Dict[str, Any]]] = {sid: [] for sid in side_ids}
    for member in members:
        pid = member.tournament_participant_id
        members_by_side[member.match_side_id].append(_participant_view(participants.get(pid), pid))

    sides_by_match: Dict[int, Dict[str, MatchSide]] = {}
    for side in sides:
        sides_by_match.setdefault(side.match_id, {})[side.side] = side

    match_views = []
    for match in matches:
        match_sides = sides_by_match.get(match.id, {})
        match_views.append(
            {
                "id": match.id,
                "round_no": match.round_no,
                "match_no": match.match_no,
                "best_of": match.best_of,
                "status": MatchStatus(match.status).value,
                "sides": [
                    {
                        "side": SideLabel(label).value,
                        "is_winner": match_sides[label].is_winner,
                        "participants": members_by_side.get(match_sides[label].id, []),
                    }
                    for label in sorted(match_sides)
                ],
            }
        )

    slots = (
        session.exec(select(BracketSlot).where(BracketSlot.target_match_id.in_(match_ids))).all()
        if match_ids
        else []
    )
    slots = sorted(slots, key=lambda s: (position[s.target_match_id], s.target_side))

    slot_views = []
    for slot in slots:
        side = sides_by_match.get(slot.target_match_id, {}).get(slot.target_side)
        side_members = members_by_side.get(side.id, []) if side else []
        slot_views.append(
            {
                "id": slot.id,
                "target_match_id": slot.target_match_id,
                "target_side": SideLabel(slot.target_side).value,
                "source_type": BracketSourceType(slot.source_type).value,
                "source_seed": slot.source_seed,
                "source_group_id": slot.source_group_id,
                "source_rank": slot.source_rank,
                "source_match_id": slot.source_match_id,
                "resolved": bool(side_members),
                "participant": side_members[0] if side_members else None,
            }
        )

    return {"stage_id": stage.id, "matches": match_views, "slots": slot_views}
