"""
Draw Session Orchestrator: stage a draw, revise it, apply it exactly once.

States: DRAFT (initial) -> APPLIED (terminal).

apply_draw dispatches on the draw type:
- DOUBLES_PAIRING:  form a doubles team per drawn user pair
- GROUP_ASSIGNMENT: place participants into groups
- KNOCKOUT_PAIRING: generate the knockout bracket (RANDOM / GROUP_RANK / CUSTOM)

Each apply validates everything first, writes in one transaction and commits
once together with the APPLIED status. Any failure rolls the whole apply back.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlmodel import Session, select

from clubbracket.models.draw import DrawGroupAssignment, DrawPairing, DrawSession, DrawStatus, DrawType
from clubbracket.models.group import GroupMember, GroupStanding, TournamentGroup
from clubbracket.models.match import Match, MatchSideMember, MatchStatus
from clubbracket.models.participant import TournamentParticipant, TournamentParticipantMember
from clubbracket.models.stage import Stage, StageType
from clubbracket.models.tournament import MatchFormat, Tournament
from clubbracket.models.user import User
from clubbracket.services.bracket_service import generate_bracket
from clubbracket.services.draw_results import (
    DoublesPairingResult,
    GroupAssignmentResult,
    KnockoutPairingResult,
    parse_draw_result,
)
from clubbracket.services.entrant_resolver import BracketOptions, EntrantSourceType, SeedOrder
from clubbracket.services.errors import BadRequestError, BracketEngineError, NotFoundError

logger = logging.getLogger(__name__)


# ============================================================================
# Draft lifecycle
# ============================================================================


def parse_draw_type(value: str) -> DrawType:
    try:
        return DrawType(value)
    except ValueError as e:
        raise BadRequestError(f"Unknown draw type: {value!r}") from e


def get_draws(
    session: Session,
    tournament_id: Optional[int] = None,
    stage_id: Optional[int] = None,
    draw_type: Optional[str] = None,
) -> List[DrawSession]:
    """Draw sessions matching the filters, newest first."""
    query = select(DrawSession)
    if tournament_id is not None:
        query = query.where(DrawSession.tournament_id == tournament_id)
    if stage_id is not None:
        query = query.where(DrawSession.stage_id == stage_id)
    if draw_type is not None:
        query = query.where(DrawSession.type == parse_draw_type(draw_type))
    return list(session.exec(query.order_by(DrawSession.created_at.desc(), DrawSession.id.desc())).all())


def get_draw(session: Session, draw_id: int) -> DrawSession:
    draw = session.get(DrawSession, draw_id)
    if not draw:
        raise NotFoundError(f"Draw session {draw_id} not found")
    return draw


def create_draw(
    session: Session,
    tournament_id: int,
    draw_type: str,
    payload: Dict[str, Any],
    stage_id: Optional[int] = None,
) -> DrawSession:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise NotFoundError(f"Tournament {tournament_id} not found")

    if stage_id is not None:
        stage = session.get(Stage, stage_id)
        if not stage or stage.tournament_id != tournament_id:
            raise BadRequestError(f"Stage {stage_id} is not part of tournament {tournament_id}")

    draw = DrawSession(
        tournament_id=tournament_id,
        stage_id=stage_id,
        type=parse_draw_type(draw_type),
        status=DrawStatus.DRAFT,
        payload=dict(payload or {}),
        result={},
    )
    session.add(draw)
    session.commit()
    session.refresh(draw)
    logger.info("DRAW_CREATE: draw_id=%s tournament_id=%s type=%s", draw.id, tournament_id, draw.type)
    return draw


def update_draw(
    session: Session,
    draw_id: int,
    payload: Optional[Dict[str, Any]] = None,
    result: Optional[Dict[str, Any]] = None,
) -> DrawSession:
    """Replace payload and/or result of a DRAFT draw."""
    draw = get_draw(session, draw_id)
    if draw.status == DrawStatus.APPLIED:
        raise BadRequestError(f"Draw session {draw_id} is already applied and can no longer be edited")

    # New dict objects so the JSON columns are flagged dirty
    if payload is not None:
        draw.payload = dict(payload)
    if result is not None:
        draw.result = dict(result)
    draw.updated_at = datetime.utcnow()

    session.add(draw)
    session.commit()
    session.refresh(draw)
    return draw


# ============================================================================
# Apply
# ============================================================================


def apply_draw(session: Session, draw_id: int) -> Dict[str, Any]:
    """
    Apply a DRAFT draw and mark it APPLIED.

    Returns:
        Dict summary (draw_id, type, status and per-type counts)

    Raises:
        NotFoundError: draw or tournament missing
        BadRequestError: already applied, or any validation failure (nothing written)
    """
    draw = get_draw(session, draw_id)
    if draw.status == DrawStatus.APPLIED:
        raise BadRequestError(f"Draw session {draw_id} has already been applied")

    result = parse_draw_result(draw.type, draw.result)

    try:
        if draw.type == DrawType.DOUBLES_PAIRING:
            summary = _apply_doubles_pairing(session, draw, result)
        elif draw.type == DrawType.GROUP_ASSIGNMENT:
            summary = _apply_group_assignment(session, draw, result)
        else:
            summary = _apply_knockout_pairing(session, draw, result)

        draw.status = DrawStatus.APPLIED
        draw.applied_at = datetime.utcnow()
        session.add(draw)
        session.commit()
    except BracketEngineError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception("DRAW_APPLY: draw_id=%s failed, transaction rolled back", draw_id)
        raise

    logger.info("DRAW_APPLY: draw_id=%s type=%s summary=%s", draw_id, summary.get("type"), summary)
    return {"draw_id": draw_id, "status": DrawStatus.APPLIED.value, **summary}


# ---------------------------------------------------------------------------
# DOUBLES_PAIRING
# ---------------------------------------------------------------------------


def _team_name(users: Dict[int, User], user_a: int, user_b: int) -> str:
    a, b = users[user_a], users[user_b]
    name_a = a.display_name or a.nickname or "Player 1"
    name_b = b.display_name or b.nickname or "Player 2"
    return f"{name_a} - {name_b}"


def _teams_in_use(session: Session, participant_ids: set) -> List[int]:
    """Participants referenced by a match side, group member, standing or group draw."""
    if not participant_ids:
        return []
    ids = list(participant_ids)
    used: set = set()
    for column in (
        MatchSideMember.tournament_participant_id,
        GroupMember.tournament_participant_id,
        GroupStanding.tournament_participant_id,
        DrawGroupAssignment.tournament_participant_id,
    ):
        used.update(session.exec(select(column).where(column.in_(ids))).all())
    return sorted(used)


def _apply_doubles_pairing(session: Session, draw: DrawSession, result: DoublesPairingResult) -> Dict[str, Any]:
    tournament = session.get(Tournament, draw.tournament_id)
    if not tournament:
        raise NotFoundError(f"Tournament {draw.tournament_id} not found")
    if tournament.match_format != MatchFormat.DOUBLES:
        raise BadRequestError(f"Tournament {tournament.id} is not a doubles tournament")
    if not result.pairs:
        raise BadRequestError("Doubles pairing result has no pairs")

    user_ids: List[int] = []
    for pair in result.pairs:
        if pair.side_a == pair.side_b:
            raise BadRequestError(f"User {pair.side_a} cannot be paired with themselves")
        user_ids.extend([pair.side_a, pair.side_b])
    if len(set(user_ids)) != len(user_ids):
        raise BadRequestError("A user appears in more than one pair")

    users = {u.id: u for u in session.exec(select(User).where(User.id.in_(user_ids))).all()}
    missing = sorted(set(user_ids) - set(users))
    if missing:
        raise BadRequestError(f"Users not found: {missing}")

    # Existing teams of these users are replaced so they can be re-paired
    stale_ids = set(
        session.exec(
            select(TournamentParticipantMember.tournament_participant_id)
            .join(
                TournamentParticipant,
                TournamentParticipant.id == TournamentParticipantMember.tournament_participant_id,
            )
            .where(
                TournamentParticipantMember.user_id.in_(user_ids),
                TournamentParticipant.tournament_id == draw.tournament_id,
            )
        ).all()
    )
    in_use = _teams_in_use(session, stale_ids)
    if in_use:
        raise BadRequestError(
            f"Teams {in_use} are already placed in groups or brackets and cannot be re-paired"
        )
    for participant_id in sorted(stale_ids):
        session.delete(session.get(TournamentParticipant, participant_id))
    session.flush()

    teams_created = 0
    for order, pair in enumerate(result.pairs, start=1):
        participant = TournamentParticipant(
            tournament_id=draw.tournament_id,
            display_name=_team_name(users, pair.side_a, pair.side_b),
            status="active",
        )
        session.add(participant)
        session.flush()
        session.add(TournamentParticipantMember(tournament_participant_id=participant.id, user_id=pair.side_a))
        session.add(TournamentParticipantMember(tournament_participant_id=participant.id, user_id=pair.side_b))
        session.add(DrawPairing(draw_session_id=draw.id, side_a_id=pair.side_a, side_b_id=pair.side_b, pair_order=order))
        teams_created += 1
    session.flush()

    return {"type": DrawType.DOUBLES_PAIRING.value, "teams_created": teams_created, "teams_replaced": len(stale_ids)}


# ---------------------------------------------------------------------------
# GROUP_ASSIGNMENT
# ---------------------------------------------------------------------------


def _participant_group_in_tournament(session: Session, participant_id: int, tournament_id: int) -> Optional[int]:
    return session.exec(
        select(GroupMember.group_id)
        .join(TournamentGroup, TournamentGroup.id == GroupMember.group_id)
        .join(Stage, Stage.id == TournamentGroup.stage_id)
        .where(GroupMember.tournament_participant_id == participant_id, Stage.tournament_id == tournament_id)
    ).first()


def _apply_group_assignment(session: Session, draw: DrawSession, result: GroupAssignmentResult) -> Dict[str, Any]:
    if not result.assignments:
        raise BadRequestError("Group assignment result has no assignments")

    seen: set = set()
    for item in result.assignments:
        group = session.get(TournamentGroup, item.group_id)
        stage = session.get(Stage, group.stage_id) if group else None
        if not stage or stage.tournament_id != draw.tournament_id:
            raise BadRequestError(f"Group {item.group_id} is not part of tournament {draw.tournament_id}")

        participant = session.get(TournamentParticipant, item.participant_id)
        if not participant or participant.tournament_id != draw.tournament_id:
            raise BadRequestError(f"Participant {item.participant_id} is not part of tournament {draw.tournament_id}")

        if item.participant_id in seen:
            raise BadRequestError(f"Participant {item.participant_id} is assigned more than once")
        seen.add(item.participant_id)

        existing_group = _participant_group_in_tournament(session, item.participant_id, draw.tournament_id)
        if existing_group is not None:
            raise BadRequestError(
                f"Participant {item.participant_id} is already in group {existing_group} of this tournament"
            )

    for item in result.assignments:
        session.add(
            GroupMember(
                group_id=item.group_id,
                tournament_participant_id=item.participant_id,
                seed_in_group=item.seed_in_group,
                status="active",
            )
        )
        session.add(
            DrawGroupAssignment(
                draw_session_id=draw.id,
                group_id=item.group_id,
                tournament_participant_id=item.participant_id,
                seed_in_group=item.seed_in_group,
            )
        )
    session.flush()

    return {"type": DrawType.GROUP_ASSIGNMENT.value, "assignments_created": len(result.assignments)}


# ---------------------------------------------------------------------------
# KNOCKOUT_PAIRING
# ---------------------------------------------------------------------------


def _custom_pairs(result: KnockoutPairingResult) -> List[Tuple[int, int]]:
    if result.pairs:
        return [(p.side_a, p.side_b) for p in result.pairs]
    if not result.order:
        raise BadRequestError("Knockout pairing result needs either order or pairs")
    if len(result.order) % 2 != 0:
        raise BadRequestError("Knockout pairing order must contain an even number of participants")
    return [(result.order[i], result.order[i + 1]) for i in range(0, len(result.order), 2)]


def knockout_options(result: KnockoutPairingResult) -> BracketOptions:
    """Translate a knockout draw result into bracket generation options."""
    best_of = result.best_of or 1
    seed_order = SeedOrder(result.seed_order)
    if result.mode == "RANDOM":
        return BracketOptions(
            source_type=EntrantSourceType.RANDOM, size=result.size, best_of=best_of, seed_order=seed_order
        )
    if result.mode == "GROUP_RANK":
        return BracketOptions(
            source_type=EntrantSourceType.GROUP_RANK,
            source_stage_id=result.source_stage_id,
            top_n_per_group=result.top_n_per_group,
            wildcard_count=result.wildcard_count,
            size=result.size,
            best_of=best_of,
            seed_order=seed_order,
        )
    return BracketOptions(
        source_type=EntrantSourceType.CUSTOM,
        pairs=_custom_pairs(result),
        size=result.size,
        best_of=best_of,
        seed_order=seed_order,
    )


def _apply_knockout_pairing(session: Session, draw: DrawSession, result: KnockoutPairingResult) -> Dict[str, Any]:
    if not draw.stage_id:
        raise BadRequestError("Knockout pairing draws need a stage")
    stage = session.get(Stage, draw.stage_id)
    if not stage or stage.type != StageType.KNOCKOUT:
        raise BadRequestError(f"Stage {draw.stage_id} is not a knockout stage")

    options = knockout_options(result)
    generation = generate_bracket(session, stage.id, options, commit=False)

    entrants = generation["entrants"]
    pairings = 0
    for order, i in enumerate(range(0, len(entrants), 2), start=1):
        side_b = entrants[i + 1] if i + 1 < len(entrants) else None
        session.add(DrawPairing(draw_session_id=draw.id, side_a_id=entrants[i], side_b_id=side_b, pair_order=order))
        pairings += 1

    matches = session.exec(select(Match).where(Match.stage_id == stage.id)).all()
    for match in matches:
        match.status = MatchStatus.SCHEDULED
        session.add(match)
    session.flush()

    return {
        "type": DrawType.KNOCKOUT_PAIRING.value,
        "mode": result.mode,
        "size": generation["size"],
        "matches_created": generation["matches_created"],
        "resolved": generation["resolved"],
        "pairings_recorded": pairings,
    }
