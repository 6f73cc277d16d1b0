"""
Bracket slots: declarations of how a match side gets its entrant.

A slot row carries one of three source kinds. In Python the kind is handled as a
tagged variant (SeedSource / GroupRankSource / MatchWinnerSource); rows are only
built through BracketSlot.from_source so the columns always agree with source_type.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from sqlalchemy import CheckConstraint, String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class BracketSourceType(str, Enum):
    SEED = "SEED"
    GROUP_RANK = "GROUP_RANK"
    MATCH_WINNER = "MATCH_WINNER"


@dataclass(frozen=True)
class SeedSource:
    seed: int
    rank: Optional[int] = None
    group_id: Optional[int] = None


@dataclass(frozen=True)
class GroupRankSource:
    group_id: int
    rank: int


@dataclass(frozen=True)
class MatchWinnerSource:
    match_id: int


SlotSource = Union[SeedSource, GroupRankSource, MatchWinnerSource]


class BracketSlot(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("target_match_id", "target_side", name="uq_bracket_slot_target"),
        CheckConstraint(
            "(source_type = 'SEED' AND source_seed IS NOT NULL AND source_match_id IS NULL)"
            " OR (source_type = 'GROUP_RANK' AND source_group_id IS NOT NULL"
            " AND source_rank IS NOT NULL AND source_match_id IS NULL)"
            " OR (source_type = 'MATCH_WINNER' AND source_match_id IS NOT NULL"
            " AND source_seed IS NULL AND source_group_id IS NULL AND source_rank IS NULL)",
            name="ck_bracket_slot_source",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    target_match_id: int = Field(foreign_key="match.id", index=True)
    target_side: str = Field(sa_column=Column(String, nullable=False))  # "A" | "B"
    source_type: BracketSourceType = Field(sa_column=Column(String, nullable=False))
    source_seed: Optional[int] = Field(default=None)
    source_group_id: Optional[int] = Field(default=None, foreign_key="tournamentgroup.id")
    source_rank: Optional[int] = Field(default=None)
    source_match_id: Optional[int] = Field(default=None, foreign_key="match.id", index=True)

    @classmethod
    def from_source(cls, target_match_id: int, target_side: str, source: SlotSource) -> "BracketSlot":
        if isinstance(source, SeedSource):
            return cls(
                target_match_id=target_match_id,
                target_side=target_side,
                source_type=BracketSourceType.SEED,
                source_seed=source.seed,
                source_rank=source.rank,
                source_group_id=source.group_id,
            )
        if isinstance(source, GroupRankSource):
            return cls(
                target_match_id=target_match_id,
                target_side=target_side,
                source_type=BracketSourceType.GROUP_RANK,
                source_group_id=source.group_id,
                source_rank=source.rank,
            )
        if isinstance(source, MatchWinnerSource):
            return cls(
                target_match_id=target_match_id,
                target_side=target_side,
                source_type=BracketSourceType.MATCH_WINNER,
                source_match_id=source.match_id,
            )
        raise TypeError(f"Unsupported slot source: {source!r}")

    @property
    def source(self) -> SlotSource:
        if self.source_type == BracketSourceType.SEED:
            return SeedSource(seed=self.source_seed, rank=self.source_rank, group_id=self.source_group_id)
        if self.source_type == BracketSourceType.GROUP_RANK:
            return GroupRankSource(group_id=self.source_group_id, rank=self.source_rank)
        if self.source_type == BracketSourceType.MATCH_WINNER:
            return MatchWinnerSource(match_id=self.source_match_id)
        raise ValueError(f"Unknown source_type: {self.source_type}")
