"""
models/like.py - SQLAlchemy ORM model for swipe decisions.

Table: likes
At most one decision per (user_id, profile_id): re-deciding overwrites action.
"""
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from proposalmatch.database import Base
from proposalmatch.models._types import utcnow


class LikeORM(Base):
    """
    action: 'like' or 'pass', exact lower-case literal (validated in swipe/recorder.py).
    """
    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("user_id", "profile_id", name="uq_likes_user_profile"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    profile_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(8), nullable=False)
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
