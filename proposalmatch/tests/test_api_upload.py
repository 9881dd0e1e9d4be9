"""
POST /api/upload tests: multipart validation, text extraction, and advisory
object-storage failures.
"""
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import EndpointConnectionError
from httpx import AsyncClient

from proposalmatch.config import settings
from proposalmatch.database import get_db
from proposalmatch.dependencies import get_storage
from proposalmatch.main import app

TEXT = "We are a 501(c)(3) nonprofit founded in 2010 serving veterans in the Pacific Northwest"


def _file(name: str, data: bytes, content_type: str = "text/plain") -> dict:
    return {"file": (name, data, content_type)}


@pytest.mark.asyncio
async def test_upload_requires_auth(client: AsyncClient) -> None:
    response = await client.post("/api/upload", files=_file("a.txt", b"hello"))
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_upload_txt_extracts_and_stores(client: AsyncClient, signup, s3_client: MagicMock) -> None:
    headers, _ = await signup()
    response = await client.post(
        "/api/upload", headers=headers, files=_file("Proposal 2024.txt", TEXT.encode())
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["fileName"] == "Proposal 2024.txt"
    assert body["fileType"] == "txt"
    assert body["extractedText"] == TEXT
    assert body["storageConfigured"] is True
    assert body["storageKey"].startswith("proposals/")
    assert body["storageKey"].endswith("_Proposal_2024.txt")
    assert body["storageUrl"].endswith(body["storageKey"])
    assert "storageError" not in body

    kwargs = s3_client.put_object.call_args.kwargs
    assert kwargs["Body"] == TEXT.encode()
    assert kwargs["ContentType"] == "text/plain"


@pytest.mark.asyncio
async def test_upload_storage_failure_still_returns_text(
    client: AsyncClient, signup, s3_client: MagicMock
) -> None:
    s3_client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.amazonaws.com")
    headers, _ = await signup()

    response = await client.post("/api/upload", headers=headers, files=_file("a.txt", TEXT.encode()))

    assert response.status_code == 200
    body = response.json()
    assert body["extractedText"] == TEXT
    assert body["storageError"] == "Storage upload failed"
    assert "amazonaws.com" not in response.text
    assert "storageKey" not in body and "storageUrl" not in body


@pytest.mark.asyncio
async def test_upload_without_storage(client: AsyncClient, signup) -> None:
    app.dependency_overrides[get_storage] = lambda: None
    headers, _ = await signup()

    response = await client.post("/api/upload", headers=headers, files=_file("a.txt", TEXT.encode()))

    assert response.status_code == 200
    body = response.json()
    assert body["storageConfigured"] is False
    assert body["storageError"] == "Object storage is not configured"


@pytest.mark.asyncio
async def test_upload_opens_no_database_session(client: AsyncClient, signup) -> None:
    headers, _ = await signup()

    async def no_session():
        raise AssertionError("upload must not open a database session")
        yield

    app.dependency_overrides[get_db] = no_session
    response = await client.post("/api/upload", headers=headers, files=_file("a.txt", TEXT.encode()))

    assert response.status_code == 200, response.text
    assert response.json()["extractedText"] == TEXT


@pytest.mark.asyncio
async def test_upload_missing_file(client: AsyncClient, signup) -> None:
    headers, _ = await signup()
    response = await client.post("/api/upload", headers=headers, data={"other": "x"})
    assert response.status_code == 422
    assert response.json()["error"]["reason"] == "MISSING_FILE"
    assert response.json()["error"]["message"] == "No file provided"


@pytest.mark.asyncio
async def test_upload_rejects_wrong_extension(client: AsyncClient, signup) -> None:
    headers, _ = await signup()
    response = await client.post(
        "/api/upload", headers=headers, files=_file("photo.png", b"\x89PNG", "image/png")
    )
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["reason"] == "UNSUPPORTED_FILE_TYPE"
    assert error["message"] == "Invalid file type. Only PDF, DOCX, and TXT files are allowed."


@pytest.mark.asyncio
async def test_upload_one_byte_over_limit_is_rejected(
    client: AsyncClient, signup, s3_client: MagicMock
) -> None:
    headers, _ = await signup()
    data = b"a" * (settings.max_upload_bytes + 1)

    response = await client.post("/api/upload", headers=headers, files=_file("big.txt", data))

    assert response.status_code == 422
    assert response.json()["error"]["reason"] == "FILE_TOO_LARGE"
    s3_client.put_object.assert_not_called()


@pytest.mark.asyncio
async def test_upload_exactly_at_limit_is_accepted(client: AsyncClient, signup) -> None:
    headers, _ = await signup()
    data = b"a" * settings.max_upload_bytes

    response = await client.post("/api/upload", headers=headers, files=_file("big.txt", data))

    assert response.status_code == 200
    assert len(response.json()["extractedText"]) == settings.max_upload_bytes


@pytest.mark.asyncio
async def test_upload_whitespace_only_is_empty_content(
    client: AsyncClient, signup, s3_client: MagicMock
) -> None:
    headers, _ = await signup()
    response = await client.post("/api/upload", headers=headers, files=_file("blank.txt", b"  \n\t \n"))

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "EXTRACTION_ERROR"
    assert error["reason"] == "EMPTY_CONTENT"
    s3_client.put_object.assert_not_called()


@pytest.mark.asyncio
async def test_upload_corrupt_pdf_is_server_error(client: AsyncClient, signup) -> None:
    headers, _ = await signup()
    response = await client.post(
        "/api/upload", headers=headers, files=_file("broken.pdf", b"not a pdf", "application/pdf")
    )
    assert response.status_code == 500
    assert response.json()["error"]["reason"] == "DECODE_FAILED"
