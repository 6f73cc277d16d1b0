from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubbracket.models.group import TournamentGroup
    from clubbracket.models.match import Match
    from clubbracket.models.tournament import Tournament


class StageType(str, Enum):
    GROUP = "GROUP"
    KNOCKOUT = "KNOCKOUT"


class Stage(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str
    type: StageType = Field(sa_column=Column(String, nullable=False))
    stage_order: int = Field(default=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="stages")
    groups: List["TournamentGroup"] = Relationship(back_populates="stage")
    matches: List["Match"] = Relationship(back_populates="stage")
