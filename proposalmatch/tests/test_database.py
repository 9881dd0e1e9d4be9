"""
get_db tests: the request session commits when the route returns and rolls
back when it raises.
"""
import pytest

from proposalmatch import database, store


async def _add_user(session, username: str) -> None:
    await store.create_user(
        session, username=username, email=f"{username}@example.org", password_hash="x", name=username
    )


@pytest.mark.asyncio
async def test_get_db_commits_when_route_returns(monkeypatch, session_factory) -> None:
    monkeypatch.setattr(database, "AsyncSessionLocal", session_factory)
    sessions = database.get_db()
    session = await sessions.__anext__()
    await _add_user(session, "alice")

    with pytest.raises(StopAsyncIteration):
        await sessions.__anext__()

    async with session_factory() as check:
        assert await store.get_user_by_username(check, "alice") is not None


@pytest.mark.asyncio
async def test_get_db_rolls_back_when_route_raises(monkeypatch, session_factory) -> None:
    monkeypatch.setattr(database, "AsyncSessionLocal", session_factory)
    sessions = database.get_db()
    session = await sessions.__anext__()
    await _add_user(session, "bob")

    with pytest.raises(RuntimeError):
        await sessions.athrow(RuntimeError("route failed"))

    async with session_factory() as check:
        assert await store.get_user_by_username(check, "bob") is None
