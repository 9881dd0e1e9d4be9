"""
main.py - ProposalMatch FastAPI application entry point.

Start with: uvicorn proposalmatch.main:app --reload --port 8000
"""
import logging
import os
import subprocess
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mistralai import Mistral
from starlette.exceptions import HTTPException as StarletteHTTPException

from proposalmatch.config import settings
from proposalmatch.database import async_engine
from proposalmatch.documents.storage import ObjectStorage
from proposalmatch.errors import AppError
from proposalmatch.extraction.client import ExtractionClient

# ---------------------------------------------------------------------------
# Logging: configured before anything else
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: startup & shutdown hooks
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      1. Run Alembic migrations (replaces any per-request "tables exist?" check)
      2. Mistral client + ExtractionClient (unconfigured without MISTRAL_API_KEY)
      3. S3 ObjectStorage (unconfigured without AWS_* settings)
    Shutdown:
      1. Dispose the database engine
    """
    # --- 1. Database: run Alembic migrations ---
    package_dir = os.path.dirname(os.path.abspath(__file__))
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
        cwd=package_dir,
    )
    if result.returncode != 0:
        logger.error("Alembic migration failed:\n%s", result.stderr)
        raise RuntimeError(f"Alembic migration failed: {result.stderr}")
    msg = result.stdout.strip() or "No pending migrations"
    logger.info("Alembic: %s", msg)

    # --- 2. Mistral client: singleton for HTTP connection pool reuse ---
    mistral: Optional[Mistral] = None
    if settings.mistral_api_key:
        mistral = Mistral(api_key=settings.mistral_api_key)
        logger.info("Mistral client initialized model=%s", settings.mistral_model)
    else:
        logger.warning("MISTRAL_API_KEY not set: structured extraction will return 502 NOT_CONFIGURED")
    app.state.extraction_client = ExtractionClient(mistral, model=settings.mistral_model)

    # --- 3. Object storage ---
    app.state.storage = ObjectStorage.from_settings(settings)
    if app.state.storage.is_configured():
        logger.info("S3 storage initialized bucket=%s region=%s", settings.aws_bucket, settings.aws_default_region)
    else:
        logger.warning("AWS storage not configured: uploads will not keep the original file")

    if not settings.secret_key:
        logger.warning("SECRET_KEY not set: login and registration will fail")

    logger.info("ProposalMatch v%s starting up", settings.app_version)
    yield

    # --- Shutdown ---
    await async_engine.dispose()
    logger.info("ProposalMatch shutting down")


# ---------------------------------------------------------------------------
# FastAPI application instance
# ---------------------------------------------------------------------------
app = FastAPI(
    title="ProposalMatch API",
    version=settings.app_version,
    description=(
        "Non-profit profile matchmaking. Upload a proposal, let the language model "
        "fill in the organization profile, review and save it, then swipe through "
        "other organizations."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# ---------------------------------------------------------------------------
# CORS middleware: restricted to frontend origins from settings
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error response helper
# ---------------------------------------------------------------------------
def _make_error_response(
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
    status_code: int = 500,
    reason: str | None = None,
) -> JSONResponse:
    """Build a standard {error: {code, reason, message, details}} response."""
    body = {
        "error": {
            "code": code,
            "reason": reason,
            "message": message,
            "details": details or [],
        }
    }
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Global exception handlers: registered BEFORE routers
# ---------------------------------------------------------------------------
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Every domain error carries its own code, reason and status."""
    if exc.status_code >= 500:
        logger.warning(
            "%s %s failed code=%s reason=%s",
            request.method, request.url.path, exc.code, exc.reason,
        )
    return _make_error_response(
        code=exc.code,
        message=exc.message,
        details=exc.details,
        status_code=exc.status_code,
        reason=exc.reason,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Converts Pydantic / FastAPI 422 validation errors to standard format.
    Returns ALL field violations in one response.
    """
    details = []
    for error in exc.errors():
        # Build dot-notation field path, excluding the top-level 'body' loc
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        details.append({"field": field or None, "issue": error["msg"]})
    return _make_error_response(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        details=details,
        status_code=422,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    Converts framework HTTPExceptions (unknown route, wrong method) to the
    standard error format with a semantic code.
    """
    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        413: "FILE_TOO_LARGE",
        422: "VALIDATION_ERROR",
    }
    code = code_map.get(exc.status_code, f"HTTP_{exc.status_code}")
    return _make_error_response(
        code=code,
        message=str(exc.detail),
        status_code=exc.status_code,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Catch-all for unexpected errors.
    DEBUG=true  -> includes exception type & message in details (dev only).
    DEBUG=false -> generic message; full traceback logged server-side only.
    """
    logger.error(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        exc_info=True,
    )
    if settings.debug:
        details = [{"issue": f"{type(exc).__name__}: {exc}"}]
        message = "An unexpected error occurred (debug details included)"
    else:
        details = []
        message = "An unexpected error occurred"
    return _make_error_response(
        code="INTERNAL_ERROR",
        message=message,
        details=details,
        status_code=500,
    )


# ---------------------------------------------------------------------------
# Health endpoint (no auth required)
# ---------------------------------------------------------------------------
@app.get("/api/health", tags=["System"])
async def health_check() -> dict:
    """Returns service health status."""
    return {
        "status": "ok",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from proposalmatch.auth.routes import router as auth_router
from proposalmatch.documents.routes import router as documents_router
from proposalmatch.profile.routes import router as profile_router
from proposalmatch.resume.routes import router as resume_router
from proposalmatch.swipe.routes import router as swipe_router

app.include_router(auth_router)
app.include_router(documents_router)
app.include_router(profile_router)
app.include_router(swipe_router)
app.include_router(resume_router)
