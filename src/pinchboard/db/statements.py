"""Single-statement helpers for counters and uniquely keyed relation rows.

Counters are always changed with one arithmetic UPDATE so concurrent
requests never read-modify-write across two round trips.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Update, case, insert, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session


def increment(model: Any, column: str, *criteria: Any, by: int = 1) -> Update:
    """Return ``UPDATE model SET column = column + by WHERE criteria``."""
    col = getattr(model, column)
    return (
        update(model)
        .where(*criteria)
        .values({column: col + by})
        .execution_options(synchronize_session=False)
    )


def decrement_floor(model: Any, column: str, *criteria: Any, by: int = 1) -> Update:
    """Return an UPDATE subtracting ``by`` from ``column`` saturating at zero."""
    col = getattr(model, column)
    return (
        update(model)
        .where(*criteria)
        .values({column: case((col > by, col - by), else_=0)})
        .execution_options(synchronize_session=False)
    )


def dialect_insert(session: Session, model: Any) -> Any:
    """Return a dialect-specific INSERT supporting ON CONFLICT, or None."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    return None


def insert_ignore(session: Session, model: Any, values: dict[str, Any]) -> bool:
    """Insert a uniquely keyed row unless it already exists.

    Returns True only when this call created the row. On dialects without
    ON CONFLICT support the unique constraint violation is caught instead,
    which rolls back the surrounding transaction together with anything the
    caller already wrote in it; callers treat a False result as "nothing
    happened" and return without further writes.
    """
    stmt = dialect_insert(session, model)
    if stmt is not None:
        result = session.execute(stmt.values(**values).on_conflict_do_nothing())
        return bool(result.rowcount)

    try:
        session.execute(insert(model).values(**values))
    except IntegrityError:
        session.rollback()
        return False
    return True
