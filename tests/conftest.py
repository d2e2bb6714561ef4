"""
Shared test fixtures for the gym staff attendance test suite.

Every test gets a fresh in-memory SQLite database (aiosqlite + AsyncSession).
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
# Use async sqlite driver
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# CORS fix (JSON format)
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["ATTENDANCE_DEFAULTS_FALLBACK"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gym_attendance.api.v1.deps import get_db
from gym_attendance.db.base import Base
from gym_attendance.main import app
from gym_attendance.rules.types import DEFAULT_ATTENDANCE_SETTINGS

API = "/api/v1"


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create all tables on a private engine, drop the engine afterwards."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory

    app.dependency_overrides.pop(get_db, None)
    await test_engine.dispose()


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


# ── Domain helpers ──────────────────────────────────────────────────
@pytest.fixture
async def configured(async_client: AsyncClient) -> dict:
    """Store the built-in attendance settings and return them as JSON."""
    body = DEFAULT_ATTENDANCE_SETTINGS.model_dump(mode="json")
    resp = await async_client.put(f"{API}/settings/attendance", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture
async def staff_id(async_client: AsyncClient) -> int:
    resp = await async_client.post(
        f"{API}/staff",
        json={"first_name": "Priya", "last_name": "Nair", "designation": "Trainer"},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]
