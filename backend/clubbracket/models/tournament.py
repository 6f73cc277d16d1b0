from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubbracket.models.participant import TournamentParticipant
    from clubbracket.models.stage import Stage


class MatchFormat(str, Enum):
    SINGLES = "SINGLES"
    DOUBLES = "DOUBLES"


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    match_format: MatchFormat = Field(default=MatchFormat.SINGLES, sa_column=Column(String, nullable=False))
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    stages: List["Stage"] = Relationship(back_populates="tournament")
    participants: List["TournamentParticipant"] = Relationship(back_populates="tournament")
