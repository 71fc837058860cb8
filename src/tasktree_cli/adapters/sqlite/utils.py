"""Utility functions for SQLite adapter."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime
from typing import Any


def now_utc() -> datetime:
    """Get the current timestamp as an aware UTC datetime."""
    return datetime.now(UTC)


def to_iso(value: datetime | date | None) -> str | None:
    """Serialize a date/datetime for storage."""
    if value is None:
        return None
    return value.isoformat()


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse a stored timestamp; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def next_timestamp(previous: str | datetime | None) -> datetime:
    """Return a fresh ``updated_at`` that never moves backwards."""
    now = now_utc()
    previous_dt = parse_datetime(previous)
    if previous_dt is not None and previous_dt > now:
        return previous_dt
    return now


def row_to_dict(row: Any) -> dict[str, Any]:
    """Convert sqlite3.Row to dictionary.

    Args:
        row: sqlite3.Row object

    Returns:
        Dictionary with column names as keys
    """
    if row is None:
        return {}
    return dict(row)


def build_update_clause(updates: dict[str, Any]) -> tuple[str, list[Any]]:
    """Build SQL UPDATE SET clause from updates dictionary.

    Unlike a WHERE builder, None values are kept: they clear the column.

    Args:
        updates: Dictionary of column names to new values

    Returns:
        Tuple of (SET clause string, parameters list)
    """
    set_parts = []
    params = []

    for key, value in updates.items():
        set_parts.append(f"{key} = ?")
        params.append(value)

    return ", ".join(set_parts), params


def placeholders(count: int) -> str:
    """Return ``?, ?, ...`` for an IN clause of ``count`` values."""
    return ", ".join("?" * count)


@contextmanager
def transaction(connection: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block inside a single write transaction.

    The connection must be in autocommit mode (``isolation_level=None``).
    Nested use joins the already-open transaction, so a cascade that calls
    several repository writes commits or rolls back as one unit.
    """
    if connection.in_transaction:
        yield connection
        return

    connection.execute("BEGIN IMMEDIATE")
    try:
        yield connection
    except BaseException:
        connection.rollback()
        raise
    else:
        connection.commit()
