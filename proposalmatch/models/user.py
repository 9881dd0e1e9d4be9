"""
models/user.py - SQLAlchemy ORM model for registered accounts.

Table: users
username and email are stored lower-cased; both are unique, so the
case-insensitive lookups in auth/security.py are plain equality matches.
"""
import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from proposalmatch.database import Base
from proposalmatch.models._types import utcnow


class UserORM(Base):
    """
    ORM model for an application user.

    password_hash: "pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>".
                   The plaintext password never reaches this table or the logs.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    username: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
