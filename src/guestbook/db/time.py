# src/guestbook/db/time.py
"""Time helpers for database models and schemas."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.dialects import sqlite

# SQLite compares timestamps as text, so bound values must use the same
# layout as CURRENT_TIMESTAMP.
_SQLITE_STORAGE_FORMAT = (
    "%(year)04d-%(month)02d-%(day)02d %(hour)02d:%(minute)02d:%(second)02d"
)

Timestamp = DateTime(timezone=True).with_variant(
    sqlite.DATETIME(storage_format=_SQLITE_STORAGE_FORMAT), "sqlite"
)


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to a naive timestamp read back from the database."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
