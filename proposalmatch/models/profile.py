"""
models/profile.py - SQLAlchemy ORM model for non-profit organization profiles.

Table: profiles
One row per owning user (owner_id unique). Writes go through the native
INSERT ... ON CONFLICT (owner_id) upserts in store.py, so two concurrent saves
from the same user can never produce a second row.

The three file_* / storage_* columns form the File Reference: all set or all NULL.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from proposalmatch.database import Base
from proposalmatch.models._types import StringList, utcnow


class ProfileORM(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    owner_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        comment="Owning user; one profile per user",
    )

    # --- File Reference ---
    file_name: Mapped[Optional[str]] = mapped_column(Text)
    storage_key: Mapped[Optional[str]] = mapped_column(Text)
    storage_url: Mapped[Optional[str]] = mapped_column(Text)

    # --- Organization fields ---
    organization_name: Mapped[Optional[str]] = mapped_column(Text)
    ein: Mapped[Optional[str]] = mapped_column(Text)
    mission_statement: Mapped[Optional[str]] = mapped_column(Text)
    year_founded: Mapped[Optional[str]] = mapped_column(Text)
    location_served: Mapped[Optional[str]] = mapped_column(Text)
    biggest_accomplishment: Mapped[Optional[str]] = mapped_column(Text)
    one_sentence_summary: Mapped[Optional[str]] = mapped_column(Text)
    legal_designation: Mapped[Optional[str]] = mapped_column(Text)
    primary_cause_areas: Mapped[list] = mapped_column(StringList, nullable=False, default=list)
    populations: Mapped[list] = mapped_column(StringList, nullable=False, default=list)
    geographical_focus: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
