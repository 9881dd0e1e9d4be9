"""
Document upload route: POST /api/upload

Shared by the profile and resume flows. Returns the extracted text and, when
object storage is available, the stored file's key and URL. Nothing is written
to the database here; the client carries these results into the next step.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from proposalmatch.auth.dependencies import Identity, require_user
from proposalmatch.config import settings
from proposalmatch.dependencies import get_storage
from proposalmatch.documents.storage import ObjectStorage
from proposalmatch.errors import ValidationError
from proposalmatch.profile.workflow import ProfileWorkflow, UploadedDocument

router = APIRouter(prefix="/api", tags=["documents"])
logger = logging.getLogger(__name__)


@router.post("/upload")
async def upload_document(
    file: Optional[UploadFile] = File(default=None),
    identity: Identity = Depends(require_user),
    storage: Optional[ObjectStorage] = Depends(get_storage),
) -> JSONResponse:
    """
    Upload a PDF, DOCX or TXT file (multipart field "file", at most 10 MiB).

    Returns:
        200: {success, fileName, fileType, extractedText, storageConfigured,
              storageKey?, storageUrl?, storageError?}
        400: EXTRACTION_ERROR / EMPTY_CONTENT
        422: VALIDATION_ERROR (MISSING_FILE | FILE_TOO_LARGE | UNSUPPORTED_FILE_TYPE)
        500: EXTRACTION_ERROR / DECODE_FAILED
    """
    if file is None or not file.filename:
        raise ValidationError("No file provided", reason="MISSING_FILE")

    # One byte past the limit is enough to reject without buffering the rest
    contents = await file.read(settings.max_upload_bytes + 1)
    document = UploadedDocument(
        data=contents,
        file_name=file.filename,
        content_type=file.content_type,
    )

    workflow = ProfileWorkflow(None, identity.user_id, storage=storage)
    outcome = await workflow.upload(document)
    return JSONResponse(status_code=200, content=outcome.to_response())
