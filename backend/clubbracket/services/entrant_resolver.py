"""
Entrant Resolver: who goes into a knockout bracket, in what order, and how big it is.

Three sourcing strategies:
- CUSTOM:     explicit (side_a, side_b) pairs supplied by the caller
- RANDOM:     every tournament participant, shuffled
- GROUP_RANK: top N per group of a finished group stage, plus optional wildcards

Read-only: validation happens here, before the bracket service writes anything.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session, select

from clubbracket.models.group import GroupStanding, TournamentGroup
from clubbracket.models.participant import TournamentParticipant
from clubbracket.models.stage import Stage
from clubbracket.services.bracket_tree import is_power_of_two, next_power_of_two, round_count
from clubbracket.services.errors import BadRequestError

logger = logging.getLogger(__name__)


class EntrantSourceType(str, Enum):
    CUSTOM = "CUSTOM"
    RANDOM = "RANDOM"
    GROUP_RANK = "GROUP_RANK"


class SeedOrder(str, Enum):
    STANDARD = "STANDARD"
    REVERSE = "REVERSE"


@dataclass
class Entrant:
    tournament_participant_id: int
    source_seed: Optional[int] = None
    source_group_id: Optional[int] = None
    source_rank: Optional[int] = None


@dataclass
class BracketOptions:
    source_type: EntrantSourceType
    source_stage_id: Optional[int] = None
    size: Optional[int] = None
    seed_order: SeedOrder = SeedOrder.STANDARD
    top_n_per_group: Optional[int] = None
    wildcard_count: int = 0
    best_of: int = 1
    pairs: List[Tuple[Optional[int], Optional[int]]] = field(default_factory=list)


@dataclass
class EntrantResolution:
    """Entrants in placement order (seed_order applied) and the validated bracket size."""

    entrants: List[Entrant]
    size: int
    source_type: EntrantSourceType

    @property
    def rounds(self) -> int:
        return round_count(self.size)


def validate_bracket_size(size: int, entrant_count: int) -> None:
    if size < entrant_count:
        raise BadRequestError(f"Bracket size {size} is smaller than the number of entrants ({entrant_count})")
    if size < 2 or not is_power_of_two(size):
        raise BadRequestError(f"Bracket size must be a power of two >= 2, got {size}")


def _resolve_size(requested: Optional[int], entrant_count: int) -> int:
    # A lone entrant still gets a 2-bracket (one bye)
    size = requested if requested is not None else max(2, next_power_of_two(entrant_count))
    validate_bracket_size(size, entrant_count)
    return size


def _custom_entrants(session: Session, stage: Stage, options: BracketOptions) -> List[Entrant]:
    if not options.pairs:
        raise BadRequestError("pairs are required for CUSTOM bracket generation")

    flattened = [pid for pair in options.pairs for pid in pair]
    if any(pid is None for pid in flattened):
        raise BadRequestError("Every pair needs both side_a and side_b participant ids")

    if len(set(flattened)) != len(flattened):
        raise BadRequestError("Duplicate participant ids in pairs")

    found = session.exec(
        select(TournamentParticipant.id).where(
            TournamentParticipant.id.in_(flattened),
            TournamentParticipant.tournament_id == stage.tournament_id,
        )
    ).all()
    if len(set(found)) != len(flattened):
        missing = sorted(set(flattened) - set(found))
        raise BadRequestError(f"Participants not in tournament {stage.tournament_id}: {missing}")

    return [Entrant(tournament_participant_id=pid, source_seed=idx) for idx, pid in enumerate(flattened, start=1)]


def _random_entrants(session: Session, stage: Stage, options: BracketOptions) -> Tuple[List[Entrant], int]:
    participants = session.exec(
        select(TournamentParticipant)
        .where(TournamentParticipant.tournament_id == stage.tournament_id)
        .order_by(TournamentParticipant.id)
    ).all()
    if not participants:
        raise BadRequestError("Tournament has no participants")

    size = _resolve_size(options.size, len(participants))

    ids = [p.id for p in participants]
    random.shuffle(ids)
    ids = ids[:size]
    entrants = [Entrant(tournament_participant_id=pid, source_seed=idx) for idx, pid in enumerate(ids, start=1)]
    return entrants, size


def _group_rank_entrants(session: Session, stage: Stage, options: BracketOptions) -> List[Entrant]:
    if not options.source_stage_id:
        raise BadRequestError("source_stage_id is required for GROUP_RANK bracket generation")
    if not options.top_n_per_group:
        raise BadRequestError("top_n_per_group is required for GROUP_RANK bracket generation")

    source_stage = session.get(Stage, options.source_stage_id)
    if not source_stage or source_stage.tournament_id != stage.tournament_id:
        raise BadRequestError(f"Source stage {options.source_stage_id} is not part of tournament {stage.tournament_id}")

    group_ids = session.exec(
        select(TournamentGroup.id).where(TournamentGroup.stage_id == source_stage.id).order_by(TournamentGroup.id)
    ).all()
    if not group_ids:
        raise BadRequestError(f"Source stage {source_stage.id} has no groups")

    # Rank first; match points only order ties within the same rank across groups
    standings = session.exec(
        select(GroupStanding)
        .where(GroupStanding.group_id.in_(group_ids), GroupStanding.rank.is_not(None))
        .order_by(
            GroupStanding.rank,
            GroupStanding.match_points.desc(),
            GroupStanding.group_id,
            GroupStanding.tournament_participant_id,
        )
    ).all()
    if not standings:
        raise BadRequestError(f"Source stage {source_stage.id} has no ranked standings yet")

    entrants: List[Entrant] = []
    taken_per_group: Dict[int, int] = {}
    taken: set = set()
    for standing in standings:
        count = taken_per_group.get(standing.group_id, 0)
        if count >= options.top_n_per_group:
            continue
        entrants.append(
            Entrant(
                tournament_participant_id=standing.tournament_participant_id,
                source_group_id=standing.group_id,
                source_rank=standing.rank,
            )
        )
        taken_per_group[standing.group_id] = count + 1
        taken.add(standing.tournament_participant_id)

    if options.wildcard_count > 0:
        wildcards = [s for s in standings if s.tournament_participant_id not in taken][: options.wildcard_count]
        for standing in wildcards:
            entrants.append(
                Entrant(
                    tournament_participant_id=standing.tournament_participant_id,
                    source_group_id=standing.group_id,
                    source_rank=standing.rank,
                )
            )

    return entrants


def resolve_entrants(session: Session, stage: Stage, options: BracketOptions) -> EntrantResolution:
    """
    Produce the ordered entrant list and bracket size for a knockout stage.

    Raises:
        BadRequestError: missing strategy parameters, invalid/duplicate participants,
            no standings, or a size that is not a power of two / too small
    """
    source_type = EntrantSourceType(options.source_type)

    if source_type == EntrantSourceType.CUSTOM:
        entrants = _custom_entrants(session, stage, options)
        size = _resolve_size(options.size, len(entrants))
    elif source_type == EntrantSourceType.RANDOM:
        entrants, size = _random_entrants(session, stage, options)
    else:
        entrants = _group_rank_entrants(session, stage, options)
        size = _resolve_size(options.size, len(entrants))

    if SeedOrder(options.seed_order) == SeedOrder.REVERSE:
        entrants = list(reversed(entrants))

    logger.info(
        "ENTRANTS_RESOLVED: stage_id=%s source_type=%s entrants=%s size=%s",
        stage.id,
        source_type.value,
        len(entrants),
        size,
    )
    return EntrantResolution(entrants=entrants, size=size, source_type=source_type)
