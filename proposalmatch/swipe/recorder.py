"""
recorder.py - Swipe Decision Recorder.

Checks run in order and nothing is written until all pass:
  1. action is exactly "like" or "pass" (case-sensitive)
  2. the target profile exists
  3. the viewer does not own it
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from proposalmatch import store
from proposalmatch.errors import ConflictError, NotFoundError, ValidationError
from proposalmatch.swipe.schemas import VALID_ACTIONS, Decision

logger = logging.getLogger(__name__)


async def record_decision(
    db: AsyncSession,
    viewer_id: str,
    profile_id: Optional[str],
    action: Optional[str],
) -> Decision:
    """
    Upsert the viewer's like/pass on one profile; re-deciding overwrites.

    Raises:
        ValidationError: missing field or action outside {"like", "pass"}.
        NotFoundError: no profile with that id.
        ConflictError(SELF_DECISION): the viewer owns the profile.
    """
    if not profile_id or not action:
        raise ValidationError("Missing required fields: profileId and action", reason="MISSING_FIELDS")
    if action not in VALID_ACTIONS:
        raise ValidationError('Invalid action. Must be "like" or "pass"', reason="INVALID_ACTION")

    profile = await store.get_profile_by_id(db, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found", reason="PROFILE_NOT_FOUND")
    if profile.owner_id == viewer_id:
        logger.info("Rejected self-decision user_id=%s profile_id=%s", viewer_id, profile_id)
        raise ConflictError("Cannot like your own profile", reason="SELF_DECISION")

    return await store.upsert_decision(db, viewer_id, profile_id, action)
