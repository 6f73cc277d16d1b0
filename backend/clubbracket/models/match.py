from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubbracket.models.stage import Stage


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class SideLabel(str, Enum):
    A = "A"
    B = "B"


class Match(SQLModel, table=True):
    # One generation pass per stage: a second concurrent pass collides here
    __table_args__ = (SAUniqueConstraint("stage_id", "round_no", "match_no", name="uq_match_stage_round_no"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    stage_id: int = Field(foreign_key="stage.id", index=True)
    round_no: int
    match_no: int
    best_of: int = Field(default=1)
    status: MatchStatus = Field(default=MatchStatus.SCHEDULED, sa_column=Column(String, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = Field(default=None)

    # Relationships
    stage: "Stage" = Relationship(back_populates="matches")
    sides: List["MatchSide"] = Relationship(
        back_populates="match", sa_relationship_kwargs={"order_by": "MatchSide.side"}
    )

    def side(self, label: str) -> Optional["MatchSide"]:
        for s in self.sides:
            if s.side == label:
                return s
        return None


class MatchSide(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("match_id", "side", name="uq_match_side"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    side: SideLabel = Field(sa_column=Column(String, nullable=False))
    is_winner: bool = Field(default=False)

    match: "Match" = Relationship(back_populates="sides")
    members: List["MatchSideMember"] = Relationship(
        back_populates="match_side", sa_relationship_kwargs={"order_by": "MatchSideMember.id"}
    )


class MatchSideMember(SQLModel, table=True):
    """Participant bound to a match side. Written once by bracket resolution, never removed."""

    __table_args__ = (
        SAUniqueConstraint("match_side_id", "tournament_participant_id", name="uq_match_side_member"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    match_side_id: int = Field(foreign_key="matchside.id", index=True)
    tournament_participant_id: int = Field(foreign_key="tournamentparticipant.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    match_side: "MatchSide" = Relationship(back_populates="members")
