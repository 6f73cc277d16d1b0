from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Club member account. Owned by the member/auth layer; read-only here."""

    id: Optional[int] = Field(default=None, primary_key=True)
    display_name: Optional[str] = None
    nickname: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
