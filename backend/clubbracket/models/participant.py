from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubbracket.models.tournament import Tournament


class TournamentParticipant(SQLModel, table=True):
    """A single player or a doubles team entered in a tournament."""

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    display_name: str
    seed: Optional[int] = Field(default=None, index=True)  # 1-based; lookup key for SEED bracket slots
    status: str = Field(default="active")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="participants")
    members: List["TournamentParticipantMember"] = Relationship(
        back_populates="participant", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )


class TournamentParticipantMember(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("tournament_participant_id", "user_id", name="uq_participant_member_user"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_participant_id: int = Field(foreign_key="tournamentparticipant.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    participant: "TournamentParticipant" = Relationship(back_populates="members")
