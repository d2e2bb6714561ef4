"""
Paid-leave balance per staff member per year.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Column, DateTime, ForeignKey, Integer,
                        UniqueConstraint)

from gym_attendance.db.base import Base


class LeaveBalanceRecord(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("staff_id", "year", name="uq_leave_balance_staff_year"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    staff_id: int = Column(Integer, ForeignKey("staff.id"), nullable=False)  # type: ignore[assignment]
    year: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    total_paid_leave: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    used_paid_leave: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
