"""
Bracket Resolver: fill empty match sides whose declared source is now available.

Pull-based. Nothing runs this automatically; callers re-invoke it after
generation, after a draw is applied and after a match result is recorded.

Guarantees:
    - Idempotent (a second call with no new results resolves 0 slots)
    - Monotonic (a side with members is never touched again)
    - Deterministic ordering (round, match number, side)
"""
import logging
from typing import Dict, List, Tuple

from sqlmodel import Session, select

from clubbracket.models.bracket_slot import (
    BracketSlot,
    GroupRankSource,
    MatchWinnerSource,
    SeedSource,
)
from clubbracket.models.group import GroupStanding
from clubbracket.models.match import Match, MatchSide, MatchSideMember
from clubbracket.models.participant import TournamentParticipant
from clubbracket.models.stage import Stage

logger = logging.getLogger(__name__)

# (match_id, side label) -> (match_side_id, is_winner)
SideIndex = Dict[Tuple[int, str], Tuple[int, bool]]


def _load_side_index(session: Session, stage_id: int) -> SideIndex:
    rows = session.exec(
        select(MatchSide.match_id, MatchSide.side, MatchSide.id, MatchSide.is_winner)
        .join(Match, Match.id == MatchSide.match_id)
        .where(Match.stage_id == stage_id)
    ).all()
    return {(match_id, side): (side_id, bool(is_winner)) for match_id, side, side_id, is_winner in rows}


def _load_members(session: Session, side_ids: List[int]) -> Dict[int, List[int]]:
    members: Dict[int, List[int]] = {side_id: [] for side_id in side_ids}
    if not side_ids:
        return members
    rows = session.exec(
        select(MatchSideMember.match_side_id, MatchSideMember.tournament_participant_id)
        .where(MatchSideMember.match_side_id.in_(side_ids))
        .order_by(MatchSideMember.id)
    ).all()
    for side_id, participant_id in rows:
        members[side_id].append(participant_id)
    return members


def _seed_entrant(session: Session, tournament_id: int, source: SeedSource) -> List[int]:
    if source.seed is None:
        return []
    participant = session.exec(
        select(TournamentParticipant)
        .where(TournamentParticipant.tournament_id == tournament_id, TournamentParticipant.seed == source.seed)
        .order_by(TournamentParticipant.id)
    ).first()
    return [participant.id] if participant else []


def _group_rank_entrant(session: Session, source: GroupRankSource) -> List[int]:
    standing = session.exec(
        select(GroupStanding)
        .where(GroupStanding.group_id == source.group_id, GroupStanding.rank == source.rank)
        .order_by(GroupStanding.id)
    ).first()
    return [standing.tournament_participant_id] if standing else []


def _match_winner_entrants(
    source: MatchWinnerSource, side_index: SideIndex, members: Dict[int, List[int]]
) -> List[int]:
    winners = [
        side_id
        for (match_id, _label), (side_id, is_winner) in side_index.items()
        if match_id == source.match_id and is_winner
    ]
    # Undecided (or inconsistently marked) source match: try again later
    if len(winners) != 1:
        return []
    return list(members.get(winners[0], []))


def resolve_bracket(session: Session, stage_id: int, commit: bool = True) -> int:
    """
    Resolve every satisfiable, still-empty slot of a stage.

    With commit=True each resolved slot is committed on its own, so a failure
    part-way keeps earlier resolutions. With commit=False rows are only flushed
    and the caller's transaction decides.

    Returns the number of slots resolved by this call.
    """
    stage = session.get(Stage, stage_id)
    if not stage:
        return 0
    tournament_id = stage.tournament_id

    slot_rows = session.exec(
        select(BracketSlot, Match.round_no, Match.match_no)
        .join(Match, Match.id == BracketSlot.target_match_id)
        .where(Match.stage_id == stage_id)
        .order_by(Match.round_no, Match.match_no, BracketSlot.target_side)
    ).all()
    # Plain values only: per-slot commits expire ORM instances
    slots = [(slot.target_match_id, slot.target_side, slot.source) for slot, _round_no, _match_no in slot_rows]

    side_index = _load_side_index(session, stage_id)
    members = _load_members(session, [side_id for side_id, _ in side_index.values()])

    resolved_count = 0
    for target_match_id, target_side, source in slots:
        target = side_index.get((target_match_id, target_side))
        if target is None:
            continue
        target_side_id = target[0]
        if members[target_side_id]:
            continue

        participant_ids: List[int] = []
        if isinstance(source, SeedSource):
            participant_ids = _seed_entrant(session, tournament_id, source)
        elif isinstance(source, GroupRankSource):
            participant_ids = _group_rank_entrant(session, source)
        elif isinstance(source, MatchWinnerSource):
            participant_ids = _match_winner_entrants(source, side_index, members)

        if not participant_ids:
            continue

        _insert_members(session, target_side_id, participant_ids, members)
        if commit:
            session.commit()
        else:
            session.flush()
        resolved_count += 1

        logger.debug(
            "SLOT_RESOLVED: stage_id=%s match_id=%s side=%s source=%s participants=%s",
            stage_id,
            target_match_id,
            target_side,
            source,
            participant_ids,
        )

    logger.info(
        "BRACKET_RESOLVE: stage_id=%s slots_total=%s resolved=%s",
        stage_id,
        len(slots),
        resolved_count,
    )
    return resolved_count


def _insert_members(
    session: Session, match_side_id: int, participant_ids: List[int], members: Dict[int, List[int]]
) -> None:
    """Insert side members, skipping any that already exist."""
    current = members.setdefault(match_side_id, [])
    for participant_id in participant_ids:
        if participant_id in current:
            continue
        session.add(MatchSideMember(match_side_id=match_side_id, tournament_participant_id=participant_id))
        current.append(participant_id)
