"""Pydantic schemas for attendance marking, leave, and reports."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, field_validator, model_validator

from gym_attendance.rules.types import (DailyStatus, LeaveBalance, LeaveType,
                                        MonthlyAttendance, SlotName,
                                        SlotOutcome)

MARKABLE_STATUSES = (DailyStatus.PRESENT, DailyStatus.HALF_DAY, DailyStatus.ABSENT)


# ── Marking ─────────────────────────────────────────────────────────
class MarkAttendanceRequest(BaseModel):
    staff_id: int
    date: dt.date
    status: DailyStatus
    # Check-in time of day; defaults to the studio's current time.
    time: dt.time | None = None
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("status")
    @classmethod
    def _markable(cls, v: DailyStatus) -> DailyStatus:
        if v not in MARKABLE_STATUSES:
            raise ValueError("Leave is requested through /attendance/leave")
        return v


class AttendanceRead(BaseModel):
    id: int
    staff_id: int
    date: str
    status: DailyStatus
    morning_slot: SlotOutcome | None = None
    evening_slot: SlotOutcome | None = None
    leave_reason: str | None = None
    notes: str | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class MarkAttendanceResponse(BaseModel):
    success: bool
    slot: SlotName
    attendance: AttendanceRead


class CurrentSlotResponse(BaseModel):
    at: str
    slot: SlotName | None
    past_half_day: bool
    message: str


# ── Leave ───────────────────────────────────────────────────────────
class LeaveRequest(BaseModel):
    staff_id: int
    start_date: dt.date
    end_date: dt.date
    leave_type: LeaveType
    reason: str = Field(max_length=500)
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("reason")
    @classmethod
    def _reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Leave reason must not be empty")
        return v

    @model_validator(mode="after")
    def _range(self) -> "LeaveRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.end_date.year != self.start_date.year:
            raise ValueError("A leave request must stay within one calendar year")
        return self


class LeaveResponse(BaseModel):
    success: bool
    leave_type: LeaveType
    days: int
    records: list[AttendanceRead]
    balance: LeaveBalance


# ── Reports ─────────────────────────────────────────────────────────
class MonthlyStaffSummary(MonthlyAttendance):
    first_name: str
    last_name: str


class MonthlyReportResponse(BaseModel):
    year: int
    month: int
    total_days: int
    staff: list[MonthlyStaffSummary]


# ── Generic ─────────────────────────────────────────────────────────
class HealthResponse(BaseModel):
    db: bool


class DeleteResponse(BaseModel):
    success: bool
    message: str
