"""
store.py - Data access facade for ProposalMatch.

Provides a consistent, high-level API for persisting and retrieving domain objects.
Routes and services use these functions: nothing else touches SQLAlchemy directly.

Design principles:
  - All functions are async and accept an AsyncSession parameter
  - No raw SQL: ORM / Core expression queries only
  - Unique-key writes (profile by owner, file reference by owner, decision by
    (user, profile)) are native INSERT ... ON CONFLICT DO UPDATE statements, so
    concurrent writes from one user can never create a duplicate row
  - Logs only ids and counts: never passwords, document text or profile prose
  - Returns domain Pydantic objects (not ORM instances) so callers are persistence-agnostic
  - Uses flush() (not commit()): the get_db() dependency owns the transaction
"""
import logging
from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from proposalmatch.auth.schemas import UserRecord
from proposalmatch.models import LikeORM, ProfileORM, ResumeORM, UserORM
from proposalmatch.models._types import utcnow
from proposalmatch.profile.schemas import (
    FILE_REFERENCE_FIELDS,
    PROFILE_FIELD_NAMES,
    FileReference,
    ProfileDraft,
    StoredProfile,
    SwipeProfile,
)
from proposalmatch.resume.schemas import ResumeFields, StoredResume
from proposalmatch.swipe.schemas import Decision

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Upsert helper
# ---------------------------------------------------------------------------

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert(db: AsyncSession, model: Any):
    """Dialect-specific INSERT that supports on_conflict_do_update()."""
    dialect = db.get_bind().dialect.name
    try:
        return _INSERTS[dialect](model)
    except KeyError:
        raise RuntimeError(f"Upserts are not supported on the '{dialect}' dialect") from None


# ---------------------------------------------------------------------------
# User operations
# ---------------------------------------------------------------------------

async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[UserRecord]:
    orm = await db.get(UserORM, user_id)
    return UserRecord.model_validate(orm) if orm is not None else None


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[UserRecord]:
    """Case-insensitive: emails are stored lower-cased."""
    result = await db.execute(
        select(UserORM).where(UserORM.email == email.strip().lower())
    )
    orm = result.scalar_one_or_none()
    return UserRecord.model_validate(orm) if orm is not None else None


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[UserRecord]:
    result = await db.execute(
        select(UserORM).where(UserORM.username == username.strip().lower())
    )
    orm = result.scalar_one_or_none()
    return UserRecord.model_validate(orm) if orm is not None else None


async def create_user(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    password_hash: str,
    name: str,
) -> UserRecord:
    """
    Insert a user. A duplicate username/email raises sqlalchemy IntegrityError
    from flush(); auth/security.py translates it.
    """
    orm = UserORM(
        username=username.strip().lower(),
        email=email.strip().lower(),
        password_hash=password_hash,
        name=name.strip(),
    )
    db.add(orm)
    await db.flush()
    logger.info("Created user user_id=%s", orm.id)
    return UserRecord.model_validate(orm)


# ---------------------------------------------------------------------------
# Profile operations
# ---------------------------------------------------------------------------

async def _select_profile_by_owner(db: AsyncSession, owner_id: str) -> Optional[ProfileORM]:
    # populate_existing: an upsert just bypassed the identity map
    result = await db.execute(
        select(ProfileORM)
        .where(ProfileORM.owner_id == owner_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_profile_by_owner(db: AsyncSession, owner_id: str) -> Optional[StoredProfile]:
    """Returns None if the user has no profile yet (GET /api/profile answers null)."""
    orm = await _select_profile_by_owner(db, owner_id)
    return StoredProfile.model_validate(orm) if orm is not None else None


async def get_profile_by_id(db: AsyncSession, profile_id: str) -> Optional[StoredProfile]:
    orm = await db.get(ProfileORM, profile_id)
    return StoredProfile.model_validate(orm) if orm is not None else None


async def upsert_profile(
    db: AsyncSession,
    owner_id: str,
    draft: ProfileDraft,
) -> StoredProfile:
    """
    Persist the full draft for owner_id: create if absent, full replace if present.

    Idempotent: saving the same draft twice leaves one row with identical content.
    """
    values = draft.model_dump(include=set(PROFILE_FIELD_NAMES) | set(FILE_REFERENCE_FIELDS))
    stmt = _insert(db, ProfileORM).values(owner_id=owner_id, **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["owner_id"],
        set_={**values, "updated_at": utcnow()},
    )
    await db.execute(stmt)
    await db.flush()

    stored = await get_profile_by_owner(db, owner_id)
    logger.info("Saved profile profile_id=%s owner_id=%s", stored.id, owner_id)
    return stored


async def update_file_reference(
    db: AsyncSession,
    owner_id: str,
    reference: FileReference,
) -> StoredProfile:
    """
    Upsert ONLY fileName/storageKey/storageUrl for owner_id.

    Every organization field of an existing row is left untouched; a new row
    gets the all-null template for them.
    """
    values = reference.model_dump()
    stmt = _insert(db, ProfileORM).values(
        owner_id=owner_id,
        primary_cause_areas=[],
        populations=[],
        **values,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["owner_id"],
        set_={**values, "updated_at": utcnow()},
    )
    await db.execute(stmt)
    await db.flush()

    stored = await get_profile_by_owner(db, owner_id)
    logger.info("Saved file reference profile_id=%s owner_id=%s", stored.id, owner_id)
    return stored


async def delete_profile(db: AsyncSession, owner_id: str) -> Optional[StoredProfile]:
    """
    Delete the caller's profile and every swipe decision that targets it.
    Returns the deleted profile (so the caller can clean up its file), or None.
    """
    orm = await _select_profile_by_owner(db, owner_id)
    if orm is None:
        return None
    deleted = StoredProfile.model_validate(orm)
    await db.execute(delete(LikeORM).where(LikeORM.profile_id == orm.id))
    await db.delete(orm)
    await db.flush()
    logger.info("Deleted profile profile_id=%s owner_id=%s", deleted.id, owner_id)
    return deleted


async def list_swipe_profiles(db: AsyncSession, viewer_id: str) -> list[SwipeProfile]:
    """
    Every profile except the viewer's own and those without an organization
    name, newest first, each with its owner's public username and name.
    """
    result = await db.execute(
        select(ProfileORM, UserORM.username, UserORM.name)
        .join(UserORM, UserORM.id == ProfileORM.owner_id)
        .where(
            ProfileORM.owner_id != viewer_id,
            ProfileORM.organization_name.is_not(None),
            func.trim(ProfileORM.organization_name) != "",
        )
        .order_by(ProfileORM.created_at.desc())
    )
    profiles = [
        SwipeProfile.model_validate(
            {
                **StoredProfile.model_validate(orm).model_dump(),
                "user": {"username": username, "name": name},
            }
        )
        for orm, username, name in result.all()
    ]
    logger.info("Listed swipe profiles viewer_id=%s count=%d", viewer_id, len(profiles))
    return profiles


# ---------------------------------------------------------------------------
# Swipe decision operations
# ---------------------------------------------------------------------------

async def upsert_decision(
    db: AsyncSession,
    user_id: str,
    profile_id: str,
    action: str,
) -> Decision:
    """One decision per (user_id, profile_id); a second call overwrites action."""
    now = utcnow()
    stmt = _insert(db, LikeORM).values(user_id=user_id, profile_id=profile_id, action=action)
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "profile_id"],
        set_={"action": action, "updated_at": now},
    )
    await db.execute(stmt)
    await db.flush()

    result = await db.execute(
        select(LikeORM)
        .where(LikeORM.user_id == user_id, LikeORM.profile_id == profile_id)
        .execution_options(populate_existing=True)
    )
    decision = Decision.model_validate(result.scalar_one())
    logger.info(
        "Recorded decision user_id=%s profile_id=%s action=%s", user_id, profile_id, action
    )
    return decision


async def count_decisions(db: AsyncSession, user_id: str, profile_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(LikeORM)
        .where(LikeORM.user_id == user_id, LikeORM.profile_id == profile_id)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Resume operations
# ---------------------------------------------------------------------------

async def create_resume(
    db: AsyncSession,
    owner_id: str,
    fields: ResumeFields,
    file_name: str,
    file_type: str,
) -> StoredResume:
    orm = ResumeORM(
        owner_id=owner_id,
        file_name=file_name,
        file_type=file_type,
        **fields.model_dump(),
    )
    db.add(orm)
    await db.flush()
    await db.refresh(orm)
    logger.info("Created resume resume_id=%s owner_id=%s", orm.id, owner_id)
    return StoredResume.model_validate(orm)


async def _select_resume(db: AsyncSession, owner_id: str, resume_id: str) -> Optional[ResumeORM]:
    result = await db.execute(
        select(ResumeORM).where(ResumeORM.id == resume_id, ResumeORM.owner_id == owner_id)
    )
    return result.scalar_one_or_none()


async def get_resume(db: AsyncSession, owner_id: str, resume_id: str) -> Optional[StoredResume]:
    orm = await _select_resume(db, owner_id, resume_id)
    return StoredResume.model_validate(orm) if orm is not None else None


async def list_resumes(
    db: AsyncSession,
    owner_id: str,
    page: int,
    limit: int,
) -> tuple[list[StoredResume], int]:
    """Newest first. Returns (page of resumes, total count for owner)."""
    result = await db.execute(
        select(ResumeORM)
        .where(ResumeORM.owner_id == owner_id)
        .order_by(ResumeORM.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = [StoredResume.model_validate(orm) for orm in result.scalars().all()]
    total = await db.execute(
        select(func.count()).select_from(ResumeORM).where(ResumeORM.owner_id == owner_id)
    )
    return rows, total.scalar_one()


async def update_resume(
    db: AsyncSession,
    owner_id: str,
    resume_id: str,
    fields: ResumeFields,
) -> Optional[StoredResume]:
    """Replace the parsed fields; file name/type are immutable after creation."""
    orm = await _select_resume(db, owner_id, resume_id)
    if orm is None:
        return None
    for name, value in fields.model_dump().items():
        setattr(orm, name, value)
    orm.updated_at = utcnow()
    await db.flush()
    logger.info("Updated resume resume_id=%s owner_id=%s", resume_id, owner_id)
    return StoredResume.model_validate(orm)


async def delete_resume(db: AsyncSession, owner_id: str, resume_id: str) -> bool:
    orm = await _select_resume(db, owner_id, resume_id)
    if orm is None:
        return False
    await db.delete(orm)
    await db.flush()
    logger.info("Deleted resume resume_id=%s owner_id=%s", resume_id, owner_id)
    return True
