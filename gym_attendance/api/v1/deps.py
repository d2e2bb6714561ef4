"""
FastAPI dependencies — database session and attendance settings.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gym_attendance.db.repository import load_settings
from gym_attendance.db.session import async_session_factory
from gym_attendance.rules.types import AttendanceSettings


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Attendance settings ─────────────────────────────────────────────
async def get_rules_settings(
    db: AsyncSession = Depends(get_db),
) -> AttendanceSettings:
    """Settings for the rules; raises ``SettingsNotConfigured`` when absent."""
    return await load_settings(db)
