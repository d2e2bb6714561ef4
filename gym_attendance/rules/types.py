"""
Value types for the staff attendance rules.

These are plain immutable pydantic models: the rules never touch the
database, they only receive and return these values.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import (BaseModel, Field, computed_field, field_serializer,
                      field_validator, model_validator)

# Index matches ``date.weekday()`` (Mon=0 .. Sun=6).
WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_MONTHLY_PAID_LEAVE_CAP = 2


class SlotName(str, Enum):
    MORNING = "morning"
    EVENING = "evening"


class SlotStatus(str, Enum):
    """Outcome of a single slot on a single day."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"


class DailyStatus(str, Enum):
    """Aggregate classification of a whole day."""

    PRESENT = "present"
    HALF_DAY = "halfDay"
    ABSENT = "absent"
    PAID_LEAVE = "paidLeave"
    UNPAID_LEAVE = "unpaidLeave"

    @property
    def is_leave(self) -> bool:
        return self in (DailyStatus.PAID_LEAVE, DailyStatus.UNPAID_LEAVE)


class LeaveType(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"

    @property
    def daily_status(self) -> DailyStatus:
        if self is LeaveType.PAID:
            return DailyStatus.PAID_LEAVE
        return DailyStatus.UNPAID_LEAVE


def minutes_of_day(t: dt.time) -> int:
    return t.hour * 60 + t.minute


def format_hhmm(t: dt.time) -> str:
    return t.strftime("%H:%M")


def _wall_clock(t: dt.time) -> dt.time:
    # Rules compare hours:minutes only.
    return t.replace(second=0, microsecond=0, tzinfo=None)


# ── Settings ────────────────────────────────────────────────────────
class SlotConfig(BaseModel):
    """A daily capture window with its half-day cutoff."""

    start: dt.time
    end: dt.time
    half_day_limit: dt.time

    model_config = {"frozen": True}

    @field_validator("start", "end", "half_day_limit")
    @classmethod
    def _truncate(cls, v: dt.time) -> dt.time:
        return _wall_clock(v)

    @model_validator(mode="after")
    def _ordered(self) -> "SlotConfig":
        if not self.start < self.half_day_limit < self.end:
            raise ValueError(
                "Slot times must satisfy start < half_day_limit < end "
                f"(got {format_hhmm(self.start)}, {format_hhmm(self.half_day_limit)}, "
                f"{format_hhmm(self.end)})"
            )
        return self

    @field_serializer("start", "end", "half_day_limit")
    def _hhmm(self, v: dt.time) -> str:
        return format_hhmm(v)


class AttendanceSettings(BaseModel):
    """Studio-wide attendance rules, passed explicitly to every rules call."""

    morning_slot: SlotConfig
    evening_slot: SlotConfig
    allowed_buffer: int = Field(default=15, ge=0, le=240)
    working_days: frozenset[str] = frozenset(WEEKDAYS[:6])
    max_paid_leave_per_month: int | None = Field(default=None, ge=0)
    max_paid_leave_per_year: int = Field(default=12, ge=0)

    model_config = {"frozen": True}

    @field_validator("working_days", mode="before")
    @classmethod
    def _weekdays(cls, v: object) -> object:
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple, set, frozenset)):
            days = {str(d).strip().lower() for d in v}
            unknown = days - set(WEEKDAYS)
            if unknown:
                raise ValueError(f"Unknown weekday(s): {', '.join(sorted(unknown))}")
            return frozenset(days)
        return v

    @field_serializer("working_days")
    def _ordered_days(self, v: frozenset[str]) -> list[str]:
        return [d for d in WEEKDAYS if d in v]

    def slot(self, name: SlotName) -> SlotConfig:
        return self.morning_slot if name is SlotName.MORNING else self.evening_slot

    def is_working_day(self, day: dt.date) -> bool:
        return WEEKDAYS[day.weekday()] in self.working_days

    @property
    def monthly_paid_leave_cap(self) -> int:
        if self.max_paid_leave_per_month is None:
            return DEFAULT_MONTHLY_PAID_LEAVE_CAP
        return self.max_paid_leave_per_month


DEFAULT_ATTENDANCE_SETTINGS = AttendanceSettings(
    morning_slot=SlotConfig(start="06:00", end="11:00", half_day_limit="08:30"),
    evening_slot=SlotConfig(start="18:00", end="22:00", half_day_limit="19:30"),
    allowed_buffer=15,
    working_days=WEEKDAYS[:6],
    max_paid_leave_per_month=DEFAULT_MONTHLY_PAID_LEAVE_CAP,
    max_paid_leave_per_year=12,
)


# ── Daily records ───────────────────────────────────────────────────
class SlotOutcome(BaseModel):
    status: SlotStatus
    check_in_time: dt.time | None = None
    late_minutes: int | None = None

    model_config = {"frozen": True}

    @field_serializer("check_in_time")
    def _hhmm(self, v: dt.time | None) -> str | None:
        return format_hhmm(v) if v is not None else None


class DailyAttendance(BaseModel):
    """One staff member's attendance for one calendar day."""

    staff_id: int
    date: dt.date
    morning_slot: SlotOutcome | None = None
    evening_slot: SlotOutcome | None = None
    status: DailyStatus
    leave_reason: str | None = None
    notes: str | None = None

    model_config = {"frozen": True}

    def slot(self, name: SlotName) -> SlotOutcome | None:
        return self.morning_slot if name is SlotName.MORNING else self.evening_slot


class MonthlyAttendance(BaseModel):
    """Derived monthly summary; recomputed from daily rows, never stored."""

    staff_id: int
    month: int
    year: int
    total_days: int
    present_days: int = 0
    half_days: int = 0
    absent_days: int = 0
    paid_leave_days: int = 0
    unpaid_leave_days: int = 0
    total_working_days: int
    attendance_percentage: float = 0.0

    model_config = {"frozen": True}


class LeaveBalance(BaseModel):
    staff_id: int
    year: int
    total_paid_leave: int
    used_paid_leave: int = 0

    model_config = {"frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_paid_leave(self) -> int:
        return self.total_paid_leave - self.used_paid_leave
