"""
workflow.py - Profile Reconciliation Workflow.

Turns an uploaded document into a persisted profile through an explicit state
machine over a typed in-memory ProfileDraft:

    EMPTY -> UPLOADED -> TEXT_EXTRACTED -> [FILE_SAVED] -> [FIELDS_EXTRACTED]
          -> REVIEWING -> SAVED

    EMPTY -> REVIEWING     manual entry, no upload
    SAVED -> REVIEWING     editing an already-saved profile (open() lands here)

Rules:
  - Only save() writes organization fields; only save_file_reference() writes
    the File Reference. Extraction never writes anything.
  - A failed text or structured extraction leaves the workflow in its last
    stable state. A storage failure is a warning on the upload outcome and
    does not undo text extraction.
  - Closed enumerations are advisory during extraction and enforced in save().

HTTP is stateless, so routes rebuild a workflow per request with open() and,
where a step depends on an earlier request, attach_text().
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from proposalmatch import store
from proposalmatch.config import settings
from proposalmatch.documents.storage import ObjectStorage, StoredObject
from proposalmatch.documents.text_extractor import (
    CONTENT_TYPES,
    SUPPORTED_EXTENSIONS,
    extract_text,
    file_extension,
    require_text,
)
from proposalmatch.errors import StorageError, ValidationError
from proposalmatch.extraction.client import ExtractionClient
from proposalmatch.profile.constants import ENUMERATED_FIELDS, PROFILE_FIELD_SET
from proposalmatch.profile.schemas import (
    FileReference,
    ProfileDraft,
    ProfileFields,
    StoredProfile,
)

logger = logging.getLogger(__name__)

STORAGE_NOT_CONFIGURED = "Object storage is not configured"


class WorkflowState(str, Enum):
    EMPTY = "empty"
    UPLOADED = "uploaded"
    TEXT_EXTRACTED = "text_extracted"
    FILE_SAVED = "file_saved"
    FIELDS_EXTRACTED = "fields_extracted"
    REVIEWING = "reviewing"
    SAVED = "saved"


# UPLOADED only exists between validation and text extraction
_TRANSIENT_STATES = {WorkflowState.UPLOADED}


@dataclass(frozen=True)
class UploadedDocument:
    data: bytes
    file_name: str
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        return file_extension(self.file_name)


@dataclass
class UploadOutcome:
    file_name: str
    file_type: str
    extracted_text: str
    storage_configured: bool
    storage_key: Optional[str] = None
    storage_url: Optional[str] = None
    storage_error: Optional[str] = None

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": True,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "extractedText": self.extracted_text,
            "storageConfigured": self.storage_configured,
        }
        if self.storage_key:
            body["storageKey"] = self.storage_key
            body["storageUrl"] = self.storage_url
        if self.storage_error:
            body["storageError"] = self.storage_error
        return body


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def validate_upload(document: UploadedDocument, max_bytes: Optional[int] = None) -> str:
    """
    Check size (inclusive limit) and declared extension. Returns the extension.

    Raises:
        ValidationError: FILE_TOO_LARGE or UNSUPPORTED_FILE_TYPE.
    """
    limit = settings.max_upload_bytes if max_bytes is None else max_bytes
    if len(document.data) > limit:
        raise ValidationError(
            f"File size exceeds {limit // (1024 * 1024)}MB limit",
            reason="FILE_TOO_LARGE",
        )
    extension = document.extension
    if extension not in SUPPORTED_EXTENSIONS:
        raise ValidationError(
            "Invalid file type. Only PDF, DOCX, and TXT files are allowed.",
            reason="UNSUPPORTED_FILE_TYPE",
        )
    return extension


def validate_enumerations(draft: ProfileDraft) -> None:
    """
    Every closed-enumeration field must hold allowed literals only (or be empty).

    Raises:
        ValidationError(INVALID_ENUMERATION) listing every offending value.
    """
    details = []
    for name, allowed in ENUMERATED_FIELDS.items():
        value = getattr(draft, name)
        values = value if isinstance(value, list) else [value]
        for item in values:
            if item and item not in allowed:
                details.append({"field": to_camel(name), "issue": f"'{item}' is not an allowed value"})
    if details:
        raise ValidationError(
            "Profile contains values outside the allowed options",
            reason="INVALID_ENUMERATION",
            details=details,
        )


def _pydantic_details(exc: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {"field": ".".join(to_camel(str(loc)) for loc in error["loc"]) or None, "issue": error["msg"]}
        for error in exc.errors()
    ]


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

class ProfileWorkflow:
    """One owner's draft and the steps that move it toward a saved profile."""

    def __init__(
        self,
        db: Optional[AsyncSession],
        owner_id: str,
        *,
        storage: Optional[ObjectStorage] = None,
        extractor: Optional[ExtractionClient] = None,
        draft: Optional[ProfileDraft] = None,
        state: WorkflowState = WorkflowState.EMPTY,
    ) -> None:
        self.db = db
        self.owner_id = owner_id
        self.storage = storage
        self.extractor = extractor
        self.draft = draft if draft is not None else ProfileDraft()
        self.state = state
        self._stable_state = state

        self.file_name: Optional[str] = None
        self.extracted_text: Optional[str] = None
        self.stored_object: Optional[StoredObject] = None

    @classmethod
    async def open(
        cls,
        db: AsyncSession,
        owner_id: str,
        *,
        storage: Optional[ObjectStorage] = None,
        extractor: Optional[ExtractionClient] = None,
    ) -> "ProfileWorkflow":
        """Start from the saved profile (REVIEWING) or the all-null template (EMPTY)."""
        saved = await store.get_profile_by_owner(db, owner_id)
        if saved is None:
            return cls(db, owner_id, storage=storage, extractor=extractor)
        return cls(
            db,
            owner_id,
            storage=storage,
            extractor=extractor,
            draft=saved.to_draft(),
            state=WorkflowState.REVIEWING,
        )

    def _enter(self, state: WorkflowState) -> None:
        logger.debug("Workflow owner_id=%s %s -> %s", self.owner_id, self.state.value, state.value)
        self.state = state
        if state not in _TRANSIENT_STATES:
            self._stable_state = state

    def _rollback(self) -> None:
        logger.info(
            "Workflow owner_id=%s reverting %s -> %s",
            self.owner_id, self.state.value, self._stable_state.value,
        )
        self.state = self._stable_state

    # ------------------------------------------------------------------
    # Upload / text
    # ------------------------------------------------------------------

    async def upload(self, document: UploadedDocument) -> UploadOutcome:
        """
        Validate, extract text, then best-effort store the original file.

        Raises:
            ValidationError: size or extension rejected (state unchanged).
            DocumentExtractionError: decode failed or no text (state reverted).
        """
        extension = validate_upload(document)
        self._enter(WorkflowState.UPLOADED)

        try:
            text = await asyncio.to_thread(extract_text, document.data, extension)
            require_text(text)
        except Exception:
            self._rollback()
            raise

        self.file_name = document.file_name
        self.extracted_text = text
        self.stored_object = None
        self._enter(WorkflowState.TEXT_EXTRACTED)

        configured = self.storage is not None and self.storage.is_configured()
        outcome = UploadOutcome(
            file_name=document.file_name,
            file_type=extension,
            extracted_text=text,
            storage_configured=configured,
        )
        if not configured:
            outcome.storage_error = STORAGE_NOT_CONFIGURED
        else:
            try:
                self.stored_object = await self.storage.upload(
                    document.data,
                    document.file_name,
                    document.content_type or CONTENT_TYPES[extension],
                )
                outcome.storage_key = self.stored_object.key
                outcome.storage_url = self.stored_object.url
            except StorageError as exc:
                logger.warning("Upload stored without original file owner_id=%s: %s", self.owner_id, exc.message)
                outcome.storage_error = exc.message

        logger.info(
            "Upload processed owner_id=%s type=%s size=%d chars=%d stored=%s",
            self.owner_id, extension, len(document.data), len(text), self.stored_object is not None,
        )
        return outcome

    def attach_text(
        self,
        text: Optional[str],
        file_name: Optional[str] = None,
        storage_key: Optional[str] = None,
        storage_url: Optional[str] = None,
    ) -> None:
        """Resume at TEXT_EXTRACTED from the results of an earlier upload request."""
        if not text or not text.strip():
            raise ValidationError("No text provided for extraction", reason="MISSING_TEXT")
        self.extracted_text = text
        self.file_name = file_name
        self.stored_object = (
            StoredObject(key=storage_key, url=storage_url) if storage_key and storage_url else None
        )
        self._enter(WorkflowState.TEXT_EXTRACTED)

    # ------------------------------------------------------------------
    # File reference
    # ------------------------------------------------------------------

    async def save_file_reference(self, reference: Optional[FileReference] = None) -> StoredProfile:
        """
        Persist ONLY the File Reference and copy it into the draft.

        Without an explicit reference, the stored object of this workflow's
        upload is used; there must be one.
        """
        if reference is None:
            if self.stored_object is None or not self.file_name:
                raise ValidationError(
                    "The file must be stored before its reference can be saved",
                    reason="STORAGE_REQUIRED",
                )
            reference = FileReference(
                file_name=self.file_name,
                storage_key=self.stored_object.key,
                storage_url=self.stored_object.url,
            )
        saved = await store.update_file_reference(self.db, self.owner_id, reference)
        self.draft = self.draft.with_file_reference(reference)
        self._enter(WorkflowState.FILE_SAVED)
        return saved

    # ------------------------------------------------------------------
    # Structured extraction
    # ------------------------------------------------------------------

    async def extract_fields(self) -> ProfileFields:
        """
        Run structured extraction on the current text and overlay the result
        on the draft. Writes nothing.
        """
        if not self.extracted_text or not self.extracted_text.strip():
            raise ValidationError("No text provided for extraction", reason="MISSING_TEXT")
        extractor = self.extractor if self.extractor is not None else ExtractionClient(None)

        data = await extractor.extract_fields(self.extracted_text, PROFILE_FIELD_SET)
        fields = ProfileFields.model_validate(data)

        self.draft = self.draft.overlay(fields)
        self._enter(WorkflowState.FIELDS_EXTRACTED)
        logger.info("Profile fields extracted owner_id=%s", self.owner_id)
        return fields

    # ------------------------------------------------------------------
    # Review / save
    # ------------------------------------------------------------------

    def edit(self, changes: dict[str, Any], replace: bool = False) -> ProfileDraft:
        """
        Apply user edits (snake_case keys) to the draft.

        replace=True starts the organization fields from the empty template
        (full replacement); the File Reference is kept unless changes set it.
        """
        base = ProfileDraft() if replace else self.draft
        if replace:
            base = base.with_file_reference(self.draft.file_reference)
        merged = {**base.model_dump(), **changes}
        try:
            draft = ProfileDraft.model_validate(merged)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid profile data", reason="INVALID_FIELDS", details=_pydantic_details(exc)
            ) from exc
        self.draft = draft
        self._enter(WorkflowState.REVIEWING)
        return draft

    async def save(self) -> StoredProfile:
        """Upsert the full draft by owner. Repeatable; saving twice changes nothing."""
        validate_enumerations(self.draft)
        saved = await store.upsert_profile(self.db, self.owner_id, self.draft)
        self.draft = saved.to_draft()
        self._enter(WorkflowState.SAVED)
        return saved


__all__ = [
    "ProfileWorkflow",
    "UploadOutcome",
    "UploadedDocument",
    "WorkflowState",
    "validate_enumerations",
    "validate_upload",
]
