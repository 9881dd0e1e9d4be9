"""
Profile HTTP routes - every path is scoped to the caller's own profile.

    GET    /api/profile              saved profile or null
    POST   /api/profile              create (CONFLICT if one exists)
    PUT    /api/profile              upsert, full replace
    DELETE /api/profile              remove profile, its decisions and its file
    POST   /api/profile/extract      structured extraction, no write
    PUT    /api/profile/file         save only the File Reference
    GET    /api/profile/file/url     presigned URL for the saved file
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from proposalmatch import store
from proposalmatch.auth.dependencies import Identity, require_user
from proposalmatch.database import get_db
from proposalmatch.dependencies import get_extraction_client, get_storage
from proposalmatch.documents.storage import SIGNED_URL_TTL, ObjectStorage
from proposalmatch.errors import ConflictError, NotFoundError, StorageError, ValidationError
from proposalmatch.extraction.client import ExtractionClient
from proposalmatch.profile.schemas import (
    ExtractRequest,
    FileReference,
    FileReferenceRequest,
    ProfileUpdate,
    StoredProfile,
)
from proposalmatch.profile.workflow import ProfileWorkflow, WorkflowState

router = APIRouter(prefix="/api/profile", tags=["profile"])
logger = logging.getLogger(__name__)


def _profile_body(profile: Optional[StoredProfile]) -> Optional[dict]:
    return profile.model_dump(mode="json", by_alias=True) if profile is not None else None


@router.get("")
async def get_profile(
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    profile = await store.get_profile_by_owner(db, identity.user_id)
    return JSONResponse(status_code=200, content={"success": True, "profile": _profile_body(profile)})


@router.post("")
async def create_profile(
    body: ProfileUpdate,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Returns:
        200: {success, profile}
        409: CONFLICT "Profile already exists. Use PUT to update."
        422: VALIDATION_ERROR (field shape or closed enumeration)
    """
    workflow = await ProfileWorkflow.open(db, identity.user_id)
    if workflow.state is WorkflowState.REVIEWING:
        raise ConflictError("Profile already exists. Use PUT to update.", reason="PROFILE_EXISTS")

    workflow.edit(body.changes(), replace=True)
    saved = await workflow.save()
    return JSONResponse(status_code=200, content={"success": True, "profile": _profile_body(saved)})


@router.put("")
async def update_profile(
    body: ProfileUpdate,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Full replace; the saved File Reference survives unless the body sets it."""
    workflow = await ProfileWorkflow.open(db, identity.user_id)
    workflow.edit(body.changes(), replace=True)
    saved = await workflow.save()
    return JSONResponse(status_code=200, content={"success": True, "profile": _profile_body(saved)})


@router.delete("")
async def delete_profile(
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    storage: Optional[ObjectStorage] = Depends(get_storage),
) -> JSONResponse:
    deleted = await store.delete_profile(db, identity.user_id)
    if deleted is None:
        raise NotFoundError("Profile not found", reason="PROFILE_NOT_FOUND")

    if deleted.storage_key and storage is not None and storage.is_configured():
        try:
            await storage.delete(deleted.storage_key)
        except StorageError as exc:
            logger.warning("Stored file left behind profile_id=%s: %s", deleted.id, exc.message)

    return JSONResponse(
        status_code=200,
        content={"success": True, "message": "Profile deleted successfully"},
    )


@router.post("/extract")
async def extract_profile_fields(
    body: ExtractRequest,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    extractor: ExtractionClient = Depends(get_extraction_client),
) -> JSONResponse:
    """
    Run structured extraction over text from a previous /api/upload.

    Returns:
        200: {success, extractedData, draft}: extractedData holds the eleven
             organization fields plus the echoed fileName/storageKey/storageUrl;
             draft is the saved profile (or template) with the extraction overlaid.
        422: VALIDATION_ERROR / MISSING_TEXT
        502: UPSTREAM_ERROR (NOT_CONFIGURED | PROVIDER_ERROR | MALFORMED_RESPONSE)
    """
    workflow = await ProfileWorkflow.open(db, identity.user_id, extractor=extractor)
    workflow.attach_text(body.extracted_text, body.file_name, body.storage_key, body.storage_url)
    fields = await workflow.extract_fields()

    extracted = {
        **fields.model_dump(by_alias=True),
        "fileName": body.file_name,
        "storageKey": body.storage_key,
        "storageUrl": body.storage_url,
    }
    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "extractedData": extracted,
            "draft": workflow.draft.model_dump(mode="json", by_alias=True),
        },
    )


@router.put("/file")
async def save_file_reference(
    body: FileReferenceRequest,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Upserts fileName/storageKey/storageUrl only; organization fields are untouched."""
    if not (body.file_name and body.storage_key and body.storage_url):
        raise ValidationError(
            "fileName, storageKey, and storageUrl are required", reason="MISSING_FIELDS"
        )
    reference = FileReference(
        file_name=body.file_name,
        storage_key=body.storage_key,
        storage_url=body.storage_url,
    )
    workflow = await ProfileWorkflow.open(db, identity.user_id)
    saved = await workflow.save_file_reference(reference)
    return JSONResponse(status_code=200, content={"success": True, "profile": _profile_body(saved)})


@router.get("/file/url")
async def get_file_url(
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    storage: Optional[ObjectStorage] = Depends(get_storage),
) -> JSONResponse:
    """
    Returns:
        200: {url, expiresIn}
        404: NOT_FOUND, no profile or no saved file
        502: UPSTREAM_ERROR, storage not configured or signing failed
    """
    profile = await store.get_profile_by_owner(db, identity.user_id)
    if profile is None or not profile.storage_key:
        raise NotFoundError("No stored file for this profile", reason="FILE_NOT_FOUND")
    if storage is None:
        raise StorageError("Object storage is not configured", reason="NOT_CONFIGURED")

    url = await storage.signed_url(profile.storage_key)
    return JSONResponse(status_code=200, content={"url": url, "expiresIn": SIGNED_URL_TTL})
