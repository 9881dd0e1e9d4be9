"""
models/_types.py - Column types shared by the ORM models.

StringList: JSONB on PostgreSQL, plain JSON elsewhere (SQLite in the test suite).
Arrays of closed-enumeration strings live here; they are never queried by element.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

StringList = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
