"""
Swipe HTTP routes - GET /api/swipe/profiles, POST /api/swipe/action
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from proposalmatch import store
from proposalmatch.auth.dependencies import Identity, require_user
from proposalmatch.database import get_db
from proposalmatch.swipe.recorder import record_decision
from proposalmatch.swipe.schemas import SwipeActionRequest

router = APIRouter(prefix="/api/swipe", tags=["swipe"])
logger = logging.getLogger(__name__)


@router.get("/profiles")
async def list_profiles(
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Other users' profiles that have an organization name, newest first."""
    profiles = await store.list_swipe_profiles(db, identity.user_id)
    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "profiles": [p.model_dump(mode="json", by_alias=True) for p in profiles],
        },
    )


@router.post("/action")
async def swipe_action(
    body: SwipeActionRequest,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Returns:
        200: {success, like}
        404: NOT_FOUND (profile)
        409: CONFLICT / SELF_DECISION
        422: VALIDATION_ERROR (MISSING_FIELDS | INVALID_ACTION)
    """
    decision = await record_decision(db, identity.user_id, body.profile_id, body.action)
    return JSONResponse(
        status_code=200,
        content={"success": True, "like": decision.model_dump(mode="json", by_alias=True)},
    )
