"""
Query helpers shared by the bracket and draw services.

COUNT results come back as a plain int or as a 1-tuple Row depending on the
SQLModel/SQLAlchemy version; scalar_int() coerces both.
"""
from typing import Any

from sqlmodel import Session, func, select


def scalar_int(x: Any) -> int:
    """Convert COUNT/aggregate result to int. Handles int or 1-tuple/Row."""
    if isinstance(x, int):
        return x
    return int(x[0])


def count_where(session: Session, column: Any, *criteria: Any) -> int:
    """SELECT COUNT(column) with optional WHERE criteria."""
    query = select(func.count(column))
    if criteria:
        query = query.where(*criteria)
    return scalar_int(session.exec(query).one())
