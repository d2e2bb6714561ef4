"""
Attendance rule violations.

Each error carries a stable ``code`` so callers can render a specific
message; the HTTP mapping lives in ``gym_attendance.core.exceptions``.
"""

from __future__ import annotations

import datetime as dt

from gym_attendance.rules.types import SlotName, format_hhmm


class AttendanceError(Exception):
    code = "attendance_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class OutsideCapturableWindow(AttendanceError):
    """No slot (plus buffer) is open at the given time of day."""

    code = "outside_capturable_window"

    def __init__(self, at: dt.time) -> None:
        super().__init__(f"Outside attendance hours ({format_hhmm(at)})")
        self.at = at


class InvalidDateError(AttendanceError):
    code = "invalid_date"


class HalfDayLimitExceeded(AttendanceError):
    """Full presence requested after the slot's half-day cutoff."""

    code = "half_day_limit_exceeded"

    def __init__(self, slot: SlotName, half_day_limit: dt.time) -> None:
        super().__init__(
            f"Cannot mark full attendance after half-day limit "
            f"({slot.value} slot, {format_hhmm(half_day_limit)}); mark halfDay instead"
        )
        self.slot = slot
        self.half_day_limit = half_day_limit


class InsufficientLeaveBalance(AttendanceError):
    code = "insufficient_leave_balance"

    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient paid leave balance. Available: {available} days, "
            f"requested: {requested}"
        )
        self.requested = requested
        self.available = available


class MonthlyLeaveCapExceeded(AttendanceError):
    code = "monthly_leave_cap_exceeded"

    def __init__(self, requested: int, cap: int) -> None:
        super().__init__(f"Cannot take more than {cap} paid leaves per month")
        self.requested = requested
        self.cap = cap


class SettingsNotConfigured(AttendanceError):
    code = "settings_not_configured"

    def __init__(self) -> None:
        super().__init__(
            "Attendance settings have not been configured; save them before "
            "recording attendance"
        )
