"""
Test configuration for ProposalMatch tests.

Every test gets a fresh in-memory SQLite database (aiosqlite, StaticPool so
all sessions share one connection) with the schema created from
Base.metadata. The API client swaps the app's database, storage and
extraction dependencies through app.dependency_overrides; ASGITransport does
not run the lifespan, so no migrations and no real providers are touched.

Providers are faked at their SDK boundary:
  - S3:      a real ObjectStorage around a MagicMock boto3 client
  - Mistral: a real ExtractionClient around a MagicMock with an AsyncMock
             chat.complete_async
"""
import json
from types import SimpleNamespace
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from proposalmatch.auth import security
from proposalmatch.config import settings
from proposalmatch.database import Base, get_db
from proposalmatch.dependencies import get_extraction_client, get_storage
from proposalmatch.documents.storage import ObjectStorage
from proposalmatch.extraction.client import ExtractionClient
from proposalmatch.main import app
import proposalmatch.models  # noqa: F401  registers every table on Base.metadata

TEST_SECRET = "test-secret-key-do-not-use-in-production"
TEST_BUCKET = "proposalmatch-test"
TEST_REGION = "us-east-1"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Signing secret set, production off, and cheap password hashing."""
    monkeypatch.setattr(settings, "secret_key", TEST_SECRET)
    monkeypatch.setattr(settings, "environment", "development")
    monkeypatch.setattr(security, "HASH_ITERATIONS", 1_000)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    """A session for store/service-level tests. Not shared with the API client."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Provider fakes
# ---------------------------------------------------------------------------

@pytest.fixture
def s3_client() -> MagicMock:
    client = MagicMock()
    client.generate_presigned_url.return_value = (
        f"https://{TEST_BUCKET}.s3.{TEST_REGION}.amazonaws.com/signed?X-Amz-Signature=abc"
    )
    return client


@pytest.fixture
def storage(s3_client: MagicMock) -> ObjectStorage:
    return ObjectStorage(
        bucket=TEST_BUCKET,
        region=TEST_REGION,
        access_key_id="AKIATEST",
        secret_access_key="secret",
        client=s3_client,
    )


def completion(content: Any) -> SimpleNamespace:
    """Shape of a mistralai chat completion response: choices[0].message.content."""
    if not isinstance(content, str) and content is not None:
        content = json.dumps(content)
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def mistral() -> MagicMock:
    client = MagicMock()
    client.chat.complete_async = AsyncMock(return_value=completion({}))
    return client


@pytest.fixture
def llm_returns(mistral: MagicMock):
    """Set what the next chat completion answers with (dict -> JSON text)."""

    def _set(content: Any) -> None:
        mistral.chat.complete_async.return_value = completion(content)

    return _set


@pytest.fixture
def extraction_client(mistral: MagicMock) -> ExtractionClient:
    return ExtractionClient(mistral, model="mistral-small-latest")


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(session_factory, storage, extraction_client):
    """Async httpx client using ASGI transport: no live server needed."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_extraction_client] = lambda: extraction_client
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client: AsyncClient):
    """
    Register + log in a user; returns (Authorization headers, user JSON).

    The cookie jar is cleared so the returned bearer header is what
    identifies the caller (the auth-token cookie would take precedence).
    """

    async def _signup(
        username: str = "alice",
        email: Optional[str] = None,
        password: str = "secret123",
        name: Optional[str] = None,
    ) -> tuple[dict[str, str], dict[str, Any]]:
        email = email or f"{username}@example.org"
        response = await client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password, "name": name or username.title()},
        )
        assert response.status_code == 200, response.text
        login = await client.post("/api/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {login.json()['token']}"}, response.json()["user"]

    return _signup
