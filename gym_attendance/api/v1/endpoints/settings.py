"""
Attendance settings endpoints for the studio-wide slot and leave rules.

Singleton pattern: only one row in attendance_settings. Unlike most
configuration there is no silent default: until a PUT stores the rules,
GET answers 409 ``settings_not_configured`` (see
``ATTENDANCE_DEFAULTS_FALLBACK`` to opt into built-in defaults).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gym_attendance.api.v1.deps import get_db
from gym_attendance.db.repository import load_settings, save_settings
from gym_attendance.rules.types import AttendanceSettings

router = APIRouter(tags=["settings"])
logger = logging.getLogger(__name__)


@router.get("/settings/attendance", response_model=AttendanceSettings)
async def get_settings(
    db: AsyncSession = Depends(get_db),
) -> AttendanceSettings:
    """Get current attendance rules."""
    return await load_settings(db)


@router.put("/settings/attendance", response_model=AttendanceSettings)
async def update_settings(
    body: AttendanceSettings,
    db: AsyncSession = Depends(get_db),
) -> AttendanceSettings:
    """Replace the attendance rules (slots, buffer, working days, leave limits)."""
    saved = await save_settings(db, body)
    await db.commit()
    logger.info("Attendance settings updated: %s", saved.model_dump(mode="json"))
    return saved
