"""
database.py - the process-wide async engine and the per-request session.

Store functions in store.py only flush; get_db decides the transaction
outcome once the route returns. The test suite swaps get_db for an
in-memory SQLite factory through app.dependency_overrides.
"""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from proposalmatch.config import settings


class Base(DeclarativeBase):
    """Metadata root for users, profiles, likes and resumes (see models/)."""


async_engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=5,
    max_overflow=10,
    pool_pre_ping=True,
)

# expire_on_commit=False: routes serialize ORM rows after the commit
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request: commit when the route returns, roll back if it raises."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
