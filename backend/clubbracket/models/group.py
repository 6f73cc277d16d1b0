from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubbracket.models.stage import Stage


class TournamentGroup(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    stage_id: int = Field(foreign_key="stage.id", index=True)
    name: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    stage: "Stage" = Relationship(back_populates="groups")
    members: List["GroupMember"] = Relationship(back_populates="group")
    standings: List["GroupStanding"] = Relationship(back_populates="group")


class GroupMember(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("group_id", "tournament_participant_id", name="uq_group_member"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="tournamentgroup.id", index=True)
    tournament_participant_id: int = Field(foreign_key="tournamentparticipant.id", index=True)
    seed_in_group: Optional[int] = Field(default=None)
    status: str = Field(default="active")

    group: "TournamentGroup" = Relationship(back_populates="members")


class GroupStanding(SQLModel, table=True):
    """Round-robin table row. Computed by the group stage; read-only for brackets."""

    __table_args__ = (
        SAUniqueConstraint("group_id", "tournament_participant_id", name="uq_group_standing"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="tournamentgroup.id", index=True)
    tournament_participant_id: int = Field(foreign_key="tournamentparticipant.id", index=True)
    rank: Optional[int] = Field(default=None)  # null until standings are finalized
    match_points: int = Field(default=0)

    group: "TournamentGroup" = Relationship(back_populates="standings")
