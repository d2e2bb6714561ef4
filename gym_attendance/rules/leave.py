"""
Leave request validation and paid-leave balance bookkeeping.
"""

from __future__ import annotations

import datetime as dt
from typing import NamedTuple

from gym_attendance.rules.errors import (AttendanceError,
                                         InsufficientLeaveBalance,
                                         MonthlyLeaveCapExceeded)
from gym_attendance.rules.types import (AttendanceSettings, LeaveBalance,
                                        LeaveType)


class LeaveDecision(NamedTuple):
    accepted: bool
    error: AttendanceError | None = None

    @property
    def reason(self) -> str | None:
        return self.error.message if self.error else None

    def raise_for_rejection(self) -> None:
        if self.error is not None:
            raise self.error


ACCEPTED = LeaveDecision(accepted=True)


def leave_days(settings: AttendanceSettings, start: dt.date, end: dt.date) -> list[dt.date]:
    """Working days in the inclusive range ``[start, end]``."""
    days = []
    current = start
    while current <= end:
        if settings.is_working_day(current):
            days.append(current)
        current += dt.timedelta(days=1)
    return days


def validate_leave_request(
    staff_id: int,
    start: dt.date,
    end: dt.date,
    leave_type: LeaveType,
    balance: LeaveBalance,
    settings: AttendanceSettings,
    required_days: int | None = None,
) -> LeaveDecision:
    """Check a leave request against the balance and the monthly cap.

    ``required_days`` defaults to the working days in the range; callers
    pass a smaller number when some days are already paid leave.
    Unpaid leave is never limited by balance.
    """
    if leave_type is LeaveType.UNPAID:
        return ACCEPTED

    if balance.staff_id != staff_id:
        raise ValueError(f"Balance belongs to staff {balance.staff_id}, not {staff_id}")

    if required_days is None:
        required_days = len(leave_days(settings, start, end))

    if required_days > balance.remaining_paid_leave:
        return LeaveDecision(
            accepted=False,
            error=InsufficientLeaveBalance(required_days, balance.remaining_paid_leave),
        )

    cap = settings.monthly_paid_leave_cap
    if required_days > cap:
        return LeaveDecision(accepted=False, error=MonthlyLeaveCapExceeded(required_days, cap))

    return ACCEPTED


def open_balance(staff_id: int, year: int, settings: AttendanceSettings) -> LeaveBalance:
    return LeaveBalance(
        staff_id=staff_id,
        year=year,
        total_paid_leave=settings.max_paid_leave_per_year,
    )


def charge(balance: LeaveBalance, days: int) -> LeaveBalance:
    return balance.model_copy(update={"used_paid_leave": balance.used_paid_leave + days})


def refund(balance: LeaveBalance, days: int) -> LeaveBalance:
    used = max(0, balance.used_paid_leave - days)
    return balance.model_copy(update={"used_paid_leave": used})
