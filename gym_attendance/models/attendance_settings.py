"""
Attendance Settings model — singleton table for admin-configurable rules.

Only one row should ever exist. The admin replaces it via the settings API;
attendance marking, leave and reports read it and pass the values to the
rules explicitly.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from gym_attendance.db.base import Base


class AttendanceSettingsRecord(Base):
    __tablename__ = "attendance_settings"

    id: int = Column(Integer, primary_key=True, default=1)  # type: ignore[assignment]
    morning_start: str = Column(String(5), nullable=False)  # type: ignore[assignment]
    morning_end: str = Column(String(5), nullable=False)  # type: ignore[assignment]
    morning_half_day_limit: str = Column(String(5), nullable=False)  # type: ignore[assignment]
    evening_start: str = Column(String(5), nullable=False)  # type: ignore[assignment]
    evening_end: str = Column(String(5), nullable=False)  # type: ignore[assignment]
    evening_half_day_limit: str = Column(String(5), nullable=False)  # type: ignore[assignment]
    allowed_buffer: int = Column(Integer, nullable=False, default=15)  # type: ignore[assignment]
    working_days: str = Column(String(80), nullable=False)  # type: ignore[assignment]  # comma list
    max_paid_leave_per_month: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    max_paid_leave_per_year: int = Column(Integer, nullable=False, default=12)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
