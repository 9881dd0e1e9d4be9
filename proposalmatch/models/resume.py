"""
models/resume.py - SQLAlchemy ORM model for parsed resumes.

Table: resumes
Owner-scoped; many resumes per user. Rows are only written by an explicit
save (POST /api/resumes), never as a side effect of extraction.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from proposalmatch.database import Base
from proposalmatch.models._types import StringList, utcnow


class ResumeORM(Base):
    __tablename__ = "resumes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    owner_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_type: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(Text)
    email: Mapped[Optional[str]] = mapped_column(Text)
    phone: Mapped[Optional[str]] = mapped_column(Text)
    last_job: Mapped[Optional[str]] = mapped_column(Text)
    last_company: Mapped[Optional[str]] = mapped_column(Text)
    years_experience: Mapped[Optional[str]] = mapped_column(Text)
    technical_skills: Mapped[list] = mapped_column(StringList, nullable=False, default=list)
    education: Mapped[Optional[str]] = mapped_column(Text)
    summary: Mapped[Optional[str]] = mapped_column(Text)
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
