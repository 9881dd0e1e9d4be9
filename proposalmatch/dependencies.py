"""
dependencies.py - FastAPI dependencies for the process-wide clients.

The S3 gateway and the Mistral extraction client are created once in the
main.py lifespan and parked on app.state; routes receive them through these
functions so tests can swap them with app.dependency_overrides.
"""
from typing import Optional

from fastapi import Request

from proposalmatch.documents.storage import ObjectStorage
from proposalmatch.extraction.client import ExtractionClient


def get_storage(request: Request) -> Optional[ObjectStorage]:
    return getattr(request.app.state, "storage", None)


def get_extraction_client(request: Request) -> ExtractionClient:
    client = getattr(request.app.state, "extraction_client", None)
    # Lifespan not run (or no key): every extraction fails with NOT_CONFIGURED
    return client if client is not None else ExtractionClient(None)
