"""Test fixtures — a fresh app and an isolated in-memory database per test.

Pattern:
1. Each test gets its own SQLite engine (aiosqlite, StaticPool so every
   session shares the one in-memory database) with the schema created.
2. Each test gets its own app from create_app(), so presence and relay
   state never leak between tests.
3. get_db is overridden to hand out sessions bound to the test engine.

Realtime assertions read connection outboxes directly: opening a
`Connection` through the lifecycle manager is exactly what the WebSocket
endpoint does, minus the socket.
"""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from crowdguard.db.engine import create_tables, get_db
from crowdguard.main import create_app
from crowdguard.realtime.relay import Connection

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


def drain(connection: Connection) -> list[tuple[str, object]]:
    """Pop everything queued for a connection as (event, data) pairs."""
    frames = []
    while not connection.outbox.empty():
        envelope = json.loads(connection.outbox.get_nowait())
        frames.append((envelope["event"], envelope["data"]))
    return frames


@pytest.fixture()
def app():
    return create_app()


@pytest_asyncio.fixture()
async def session_factory():
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(app, session_factory):
    """HTTP client with the app's get_db pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def peers(app):
    """Two open connections (as if two map clients were connected)."""
    lifecycle = app.state.lifecycle
    first, second = Connection("peer-1"), Connection("peer-2")
    lifecycle.open(first)
    lifecycle.open(second)
    drain(first)
    drain(second)
    return first, second
