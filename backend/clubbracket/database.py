import os
from pathlib import Path
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clubbracket.db")

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
_echo = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=_echo,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def import_models() -> None:
    """Import every table model so it is registered with SQLModel metadata"""
    from clubbracket.models.bracket_slot import BracketSlot  # noqa: F401
    from clubbracket.models.draw import DrawGroupAssignment, DrawPairing, DrawSession  # noqa: F401
    from clubbracket.models.group import GroupMember, GroupStanding, TournamentGroup  # noqa: F401
    from clubbracket.models.match import Match, MatchSide, MatchSideMember  # noqa: F401
    from clubbracket.models.participant import TournamentParticipant, TournamentParticipantMember  # noqa: F401
    from clubbracket.models.stage import Stage  # noqa: F401
    from clubbracket.models.tournament import Tournament  # noqa: F401
    from clubbracket.models.user import User  # noqa: F401


def init_db() -> None:
    """Initialize database - create all tables"""
    import_models()
    SQLModel.metadata.create_all(engine)
