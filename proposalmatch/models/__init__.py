"""
models/__init__.py - imports all ORM models so Alembic's env.py
sees them via Base.metadata.

Import order follows FK dependencies: users before profiles, profiles before likes.
"""
from proposalmatch.models.user import UserORM
from proposalmatch.models.profile import ProfileORM
from proposalmatch.models.like import LikeORM
from proposalmatch.models.resume import ResumeORM

__all__ = ["UserORM", "ProfileORM", "LikeORM", "ResumeORM"]
