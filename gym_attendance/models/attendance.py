"""
Daily attendance rows, exactly one per (staff_id, date).

The unique constraint is what turns concurrent writes for the same day
into an upsert instead of duplicate rows.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Column, DateTime, ForeignKey, Index, Integer, String,
                        UniqueConstraint)
from sqlalchemy.orm import relationship

from gym_attendance.db.base import Base


class AttendanceRecord(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("staff_id", "date", name="uq_attendance_staff_date"),
        Index("ix_attendance_date", "date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    staff_id: int = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)  # type: ignore[assignment]
    date: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # YYYY-MM-DD
    status: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    # present | halfDay | absent | paidLeave | unpaidLeave

    morning_status: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]
    morning_check_in: str | None = Column(String(5), nullable=True)  # type: ignore[assignment]  # HH:MM
    morning_late_minutes: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    evening_status: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]
    evening_check_in: str | None = Column(String(5), nullable=True)  # type: ignore[assignment]  # HH:MM
    evening_late_minutes: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]

    leave_reason: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    notes: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    staff = relationship("StaffMember", back_populates="attendances")
