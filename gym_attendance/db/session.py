"""
Async SQLAlchemy engine & session factory.

PostgreSQL (asyncpg) in production; SQLite (aiosqlite) for local runs and
tests. Sessions do not expire on commit so endpoints can keep reading the
rows they just wrote.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gym_attendance.core.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """Pool and driver options for a database URL."""
    options: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if database_url.startswith("postgresql"):
        # One studio console per branch; a small pool is plenty.
        options.update(pool_size=10, max_overflow=5, pool_recycle=300)
    elif database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    return options


engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
