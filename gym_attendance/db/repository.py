"""
Storage collaborator for the attendance rules.

Converts between ORM rows and rule value types and provides the pull
interface (``load_attendance``) used instead of live listeners. Callers
own the transaction; only the settings fallback commits on its own.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gym_attendance.core.config import settings as app_settings
from gym_attendance.models.attendance import AttendanceRecord
from gym_attendance.models.attendance_settings import AttendanceSettingsRecord
from gym_attendance.models.leave_balance import LeaveBalanceRecord
from gym_attendance.models.staff import StaffMember
from gym_attendance.rules.errors import SettingsNotConfigured
from gym_attendance.rules.leave import open_balance
from gym_attendance.rules.types import (DEFAULT_ATTENDANCE_SETTINGS, WEEKDAYS,
                                        AttendanceSettings, DailyAttendance,
                                        DailyStatus, LeaveBalance, SlotConfig,
                                        SlotName, SlotOutcome, SlotStatus,
                                        format_hhmm)

logger = logging.getLogger(__name__)


# ── Settings ────────────────────────────────────────────────────────
def settings_from_record(rec: AttendanceSettingsRecord) -> AttendanceSettings:
    return AttendanceSettings(
        morning_slot=SlotConfig(
            start=rec.morning_start,
            end=rec.morning_end,
            half_day_limit=rec.morning_half_day_limit,
        ),
        evening_slot=SlotConfig(
            start=rec.evening_start,
            end=rec.evening_end,
            half_day_limit=rec.evening_half_day_limit,
        ),
        allowed_buffer=rec.allowed_buffer,
        working_days=[d for d in rec.working_days.split(",") if d],
        max_paid_leave_per_month=rec.max_paid_leave_per_month,
        max_paid_leave_per_year=rec.max_paid_leave_per_year,
    )


def _write_settings(rec: AttendanceSettingsRecord, value: AttendanceSettings) -> None:
    rec.morning_start = format_hhmm(value.morning_slot.start)
    rec.morning_end = format_hhmm(value.morning_slot.end)
    rec.morning_half_day_limit = format_hhmm(value.morning_slot.half_day_limit)
    rec.evening_start = format_hhmm(value.evening_slot.start)
    rec.evening_end = format_hhmm(value.evening_slot.end)
    rec.evening_half_day_limit = format_hhmm(value.evening_slot.half_day_limit)
    rec.allowed_buffer = value.allowed_buffer
    rec.working_days = ",".join(d for d in WEEKDAYS if d in value.working_days)
    rec.max_paid_leave_per_month = value.max_paid_leave_per_month
    rec.max_paid_leave_per_year = value.max_paid_leave_per_year


async def _settings_row(db: AsyncSession) -> AttendanceSettingsRecord | None:
    result = await db.execute(select(AttendanceSettingsRecord).limit(1))
    return result.scalar_one_or_none()


async def save_settings(db: AsyncSession, value: AttendanceSettings) -> AttendanceSettings:
    rec = await _settings_row(db)
    if rec is None:
        rec = AttendanceSettingsRecord(id=1)
        db.add(rec)
    _write_settings(rec, value)
    await db.flush()
    return value


async def load_settings(db: AsyncSession) -> AttendanceSettings:
    """Read the singleton settings row.

    Raises ``SettingsNotConfigured`` when none has been saved, unless the
    defaults fallback is switched on, in which case the defaults are stored.
    """
    rec = await _settings_row(db)
    if rec is not None:
        return settings_from_record(rec)

    if not app_settings.ATTENDANCE_DEFAULTS_FALLBACK:
        raise SettingsNotConfigured()

    logger.warning("No attendance settings saved; storing built-in defaults")
    await save_settings(db, DEFAULT_ATTENDANCE_SETTINGS)
    await db.commit()
    return DEFAULT_ATTENDANCE_SETTINGS


# ── Daily attendance ────────────────────────────────────────────────
def _slot_from_columns(
    status: str | None, check_in: str | None, late: int | None
) -> SlotOutcome | None:
    if status is None:
        return None
    return SlotOutcome(
        status=SlotStatus(status),
        check_in_time=check_in,
        late_minutes=late,
    )


def to_daily(rec: AttendanceRecord) -> DailyAttendance:
    return DailyAttendance(
        staff_id=rec.staff_id,
        date=date.fromisoformat(rec.date),
        morning_slot=_slot_from_columns(
            rec.morning_status, rec.morning_check_in, rec.morning_late_minutes
        ),
        evening_slot=_slot_from_columns(
            rec.evening_status, rec.evening_check_in, rec.evening_late_minutes
        ),
        status=DailyStatus(rec.status),
        leave_reason=rec.leave_reason,
        notes=rec.notes,
    )


def _write_daily(rec: AttendanceRecord, daily: DailyAttendance) -> None:
    rec.status = daily.status.value
    rec.leave_reason = daily.leave_reason
    rec.notes = daily.notes
    for name in SlotName:
        outcome = daily.slot(name)
        setattr(rec, f"{name.value}_status", outcome.status.value if outcome else None)
        setattr(
            rec,
            f"{name.value}_check_in",
            format_hhmm(outcome.check_in_time) if outcome and outcome.check_in_time else None,
        )
        setattr(rec, f"{name.value}_late_minutes", outcome.late_minutes if outcome else None)


async def load_attendance(
    db: AsyncSession,
    start: date,
    end: date,
    staff_id: int | None = None,
) -> list[AttendanceRecord]:
    """All daily rows with ``start <= date <= end``, optionally for one staff member."""
    stmt = (
        select(AttendanceRecord)
        .where(
            AttendanceRecord.date >= start.isoformat(),
            AttendanceRecord.date <= end.isoformat(),
        )
        .order_by(AttendanceRecord.date, AttendanceRecord.staff_id)
    )
    if staff_id is not None:
        stmt = stmt.where(AttendanceRecord.staff_id == staff_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_attendance(db: AsyncSession, staff_id: int, day: date) -> AttendanceRecord | None:
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.staff_id == staff_id,
            AttendanceRecord.date == day.isoformat(),
        )
    )
    return result.scalar_one_or_none()


async def upsert_attendance(db: AsyncSession, daily: DailyAttendance) -> AttendanceRecord:
    """Insert or replace the row keyed by (staff_id, date)."""
    rec = await get_attendance(db, daily.staff_id, daily.date)
    if rec is None:
        rec = AttendanceRecord(staff_id=daily.staff_id, date=daily.date.isoformat())
        db.add(rec)
    _write_daily(rec, daily)
    await db.flush()
    return rec


# ── Leave balances ──────────────────────────────────────────────────
def balance_from_record(rec: LeaveBalanceRecord) -> LeaveBalance:
    return LeaveBalance(
        staff_id=rec.staff_id,
        year=rec.year,
        total_paid_leave=rec.total_paid_leave,
        used_paid_leave=rec.used_paid_leave,
    )


async def get_or_open_balance(
    db: AsyncSession, staff_id: int, year: int, rules: AttendanceSettings
) -> LeaveBalanceRecord:
    result = await db.execute(
        select(LeaveBalanceRecord).where(
            LeaveBalanceRecord.staff_id == staff_id,
            LeaveBalanceRecord.year == year,
        )
    )
    rec = result.scalar_one_or_none()
    if rec is None:
        opened = open_balance(staff_id, year, rules)
        rec = LeaveBalanceRecord(
            staff_id=staff_id,
            year=year,
            total_paid_leave=opened.total_paid_leave,
            used_paid_leave=opened.used_paid_leave,
        )
        db.add(rec)
        await db.flush()
        logger.info("Opened %d-day leave balance for staff %d (%d)", rec.total_paid_leave, staff_id, year)
    return rec


def store_balance(rec: LeaveBalanceRecord, balance: LeaveBalance) -> None:
    rec.total_paid_leave = balance.total_paid_leave
    rec.used_paid_leave = balance.used_paid_leave


# ── Staff ───────────────────────────────────────────────────────────
async def get_active_staff(db: AsyncSession, staff_id: int) -> StaffMember | None:
    result = await db.execute(
        select(StaffMember).where(StaffMember.id == staff_id, StaffMember.is_active.is_(True))
    )
    return result.scalar_one_or_none()
