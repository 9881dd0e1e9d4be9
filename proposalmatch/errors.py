"""
errors.py - Error taxonomy shared by every ProposalMatch component.

Business logic raises these; main.py turns them into the standard envelope:

    {"error": {"code": "...", "reason": "...", "message": "...", "details": [...]}}

code    - the error kind (VALIDATION_ERROR, UNAUTHORIZED, ...). Stable.
reason  - optional finer-grained, machine-readable sub-kind (EMPTY_CONTENT,
          SELF_DECISION, USERNAME_TAKEN, ...). Stable.
message - human-readable text, safe to show to the caller.

No HTTPException anywhere below the route layer: services raise AppError
subclasses and stay importable without FastAPI.
"""
from typing import Any, Optional


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        details: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.details = details or []


class ValidationError(AppError):
    """Malformed or missing input. Always the caller's fault."""
    code = "VALIDATION_ERROR"
    status_code = 422


class AuthError(AppError):
    """Missing, invalid or expired credential. Message is always generic."""
    code = "UNAUTHORIZED"
    status_code = 401


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(AppError):
    """Duplicate unique key, or a write the data model forbids (self-decision)."""
    code = "CONFLICT"
    status_code = 409


class UpstreamError(AppError):
    """External AI or storage provider failure. Never retried automatically."""
    code = "UPSTREAM_ERROR"
    status_code = 502


class StorageError(UpstreamError):
    """
    Object storage failure. Non-fatal on the upload path: the workflow turns it
    into a warning instead of letting it reach the HTTP boundary.
    """

    def __init__(self, message: str, reason: Optional[str] = "STORAGE_FAILED") -> None:
        super().__init__(message, reason=reason)


class StructuredExtractionError(UpstreamError):
    """The language model answered, but not with a usable JSON object."""

    def __init__(self, message: str, reason: Optional[str] = "MALFORMED_RESPONSE") -> None:
        super().__init__(message, reason=reason)


class DocumentExtractionError(AppError):
    """
    Text could not be read from an uploaded document.

    reason is one of DECODE_FAILED, UNSUPPORTED_TYPE, EMPTY_CONTENT.
    An empty document is the caller's problem (400); a decoder crash is ours (500).
    """
    code = "EXTRACTION_ERROR"

    DECODE_FAILED = "DECODE_FAILED"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    EMPTY_CONTENT = "EMPTY_CONTENT"

    def __init__(self, message: str, reason: str = DECODE_FAILED) -> None:
        super().__init__(message, reason=reason)
        self.status_code = 400 if reason == self.EMPTY_CONTENT else 500


__all__ = [
    "AppError",
    "ValidationError",
    "AuthError",
    "NotFoundError",
    "ConflictError",
    "UpstreamError",
    "StorageError",
    "StructuredExtractionError",
    "DocumentExtractionError",
]
