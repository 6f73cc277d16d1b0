from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, String
from sqlmodel import Column, Field, SQLModel


class DrawType(str, Enum):
    DOUBLES_PAIRING = "DOUBLES_PAIRING"
    GROUP_ASSIGNMENT = "GROUP_ASSIGNMENT"
    KNOCKOUT_PAIRING = "KNOCKOUT_PAIRING"


class DrawStatus(str, Enum):
    DRAFT = "DRAFT"
    APPLIED = "APPLIED"


class DrawSession(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    stage_id: Optional[int] = Field(default=None, foreign_key="stage.id", index=True)
    type: DrawType = Field(sa_column=Column(String, nullable=False))
    status: DrawStatus = Field(default=DrawStatus.DRAFT, sa_column=Column(String, nullable=False))

    # Input parameters and staged arrangement; both frozen once APPLIED
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    result: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})
    applied_at: Optional[datetime] = Field(default=None)


class DrawPairing(SQLModel, table=True):
    """Audit row for one produced pair. User ids for doubles pairing, participant ids for knockout."""

    id: Optional[int] = Field(default=None, primary_key=True)
    draw_session_id: int = Field(foreign_key="drawsession.id", index=True)
    side_a_id: int
    side_b_id: Optional[int] = Field(default=None)  # null = bye
    pair_order: int


class DrawGroupAssignment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    draw_session_id: int = Field(foreign_key="drawsession.id", index=True)
    group_id: int = Field(foreign_key="tournamentgroup.id")
    tournament_participant_id: int = Field(foreign_key="tournamentparticipant.id")
    seed_in_group: Optional[int] = Field(default=None)
