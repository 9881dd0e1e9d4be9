"""
Resume parser HTTP routes - all scoped to the caller.

    POST   /api/resumes/extract   structured extraction of resume text, no write
    GET    /api/resumes           paginated list, newest first
    POST   /api/resumes           save a resume (extracted or manual)
    GET    /api/resumes/{id}
    PUT    /api/resumes/{id}      replace the parsed fields
    DELETE /api/resumes/{id}

Text comes from the shared POST /api/upload endpoint.
"""
import logging
import math

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from proposalmatch import store
from proposalmatch.auth.dependencies import Identity, require_user
from proposalmatch.database import get_db
from proposalmatch.dependencies import get_extraction_client
from proposalmatch.errors import NotFoundError, ValidationError
from proposalmatch.extraction.client import ExtractionClient
from proposalmatch.resume.schemas import (
    MANUAL_FILE_NAME,
    MANUAL_FILE_TYPE,
    RESUME_FIELD_SET,
    ResumeExtractRequest,
    ResumeFields,
    ResumeWrite,
    StoredResume,
)

router = APIRouter(prefix="/api/resumes", tags=["resumes"])
logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def _resume_body(resume: StoredResume) -> dict:
    return resume.model_dump(mode="json", by_alias=True)


@router.post("/extract")
async def extract_resume(
    body: ResumeExtractRequest,
    identity: Identity = Depends(require_user),
    extractor: ExtractionClient = Depends(get_extraction_client),
) -> JSONResponse:
    """
    Returns:
        200: {success, extractedData}: the nine resume fields plus fileName/fileType
        422: VALIDATION_ERROR / MISSING_TEXT
        502: UPSTREAM_ERROR
    """
    if not body.extracted_text or not body.extracted_text.strip():
        raise ValidationError("No text provided for extraction", reason="MISSING_TEXT")

    data = await extractor.extract_fields(body.extracted_text, RESUME_FIELD_SET)
    fields = ResumeFields.model_validate(data)
    logger.info("Resume fields extracted user_id=%s", identity.user_id)

    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "extractedData": {
                **fields.model_dump(by_alias=True),
                "fileName": body.file_name or "unknown",
                "fileType": body.file_type or "unknown",
            },
        },
    )


@router.get("")
async def list_resumes(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1),
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    limit = min(limit, MAX_PAGE_SIZE)
    resumes, total = await store.list_resumes(db, identity.user_id, page, limit)
    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "resumes": [_resume_body(r) for r in resumes],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit),
            },
        },
    )


@router.post("")
async def create_resume(
    body: ResumeWrite,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    resume = await store.create_resume(
        db,
        identity.user_id,
        body.fields(),
        file_name=body.file_name or MANUAL_FILE_NAME,
        file_type=body.file_type or MANUAL_FILE_TYPE,
    )
    return JSONResponse(status_code=200, content={"success": True, "resume": _resume_body(resume)})


@router.get("/{resume_id}")
async def get_resume(
    resume_id: str,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    resume = await store.get_resume(db, identity.user_id, resume_id)
    if resume is None:
        raise NotFoundError("Resume not found", reason="RESUME_NOT_FOUND")
    return JSONResponse(status_code=200, content={"success": True, "resume": _resume_body(resume)})


@router.put("/{resume_id}")
async def update_resume(
    resume_id: str,
    body: ResumeWrite,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    resume = await store.update_resume(db, identity.user_id, resume_id, body.fields())
    if resume is None:
        raise NotFoundError("Resume not found", reason="RESUME_NOT_FOUND")
    return JSONResponse(status_code=200, content={"success": True, "resume": _resume_body(resume)})


@router.delete("/{resume_id}")
async def delete_resume(
    resume_id: str,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    if not await store.delete_resume(db, identity.user_id, resume_id):
        raise NotFoundError("Resume not found", reason="RESUME_NOT_FOUND")
    return JSONResponse(
        status_code=200,
        content={"success": True, "message": "Resume deleted successfully"},
    )
