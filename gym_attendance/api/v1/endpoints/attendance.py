"""
Attendance marking, leave requests, listing and deletion.

Every write goes through the rules first; the store only ever sees a
complete replacement record for the (staff_id, date) pair.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, time

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gym_attendance.api.v1.deps import get_db, get_rules_settings
from gym_attendance.core.clock import local_now, local_today
from gym_attendance.db.repository import (balance_from_record,
                                          get_active_staff, get_attendance,
                                          get_or_open_balance,
                                          load_attendance, store_balance,
                                          to_daily, upsert_attendance)
from gym_attendance.models.attendance import AttendanceRecord
from gym_attendance.models.leave_balance import LeaveBalanceRecord
from gym_attendance.models.staff import StaffMember
from gym_attendance.rules.daily import ensure_not_future, leave_day, mark_slot
from gym_attendance.rules.errors import InvalidDateError
from gym_attendance.rules.leave import (charge, leave_days, refund,
                                        validate_leave_request)
from gym_attendance.rules.slots import find_open_slot
from gym_attendance.rules.types import (AttendanceSettings, DailyStatus,
                                        LeaveType, format_hhmm)
from gym_attendance.schemas.attendance import (AttendanceRead,
                                               CurrentSlotResponse,
                                               DeleteResponse, LeaveRequest,
                                               LeaveResponse,
                                               MarkAttendanceRequest,
                                               MarkAttendanceResponse)

router = APIRouter(tags=["attendance"])
logger = logging.getLogger(__name__)

_MAX_RANGE_DAYS = 366
# A concurrent insert for the same (staff_id, date) is retried once as an update.
_WRITE_ATTEMPTS = 2


# ── Helpers ─────────────────────────────────────────────────────────
def _read(rec: AttendanceRecord) -> AttendanceRead:
    daily = to_daily(rec)
    return AttendanceRead(
        id=rec.id,
        staff_id=rec.staff_id,
        date=rec.date,
        status=daily.status,
        morning_slot=daily.morning_slot,
        evening_slot=daily.evening_slot,
        leave_reason=daily.leave_reason,
        notes=daily.notes,
        created_at=rec.created_at,
        updated_at=rec.updated_at,
    )


async def _staff_or_404(db: AsyncSession, staff_id: int) -> StaffMember:
    staff = await get_active_staff(db, staff_id)
    if staff is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return staff


async def _refund_paid_days(
    db: AsyncSession,
    staff_id: int,
    days: list[date],
    rules: AttendanceSettings,
) -> None:
    """Give back one paid-leave day per date, charged to each date's year."""
    for year, count in Counter(d.year for d in days).items():
        rec = await get_or_open_balance(db, staff_id, year, rules)
        store_balance(rec, refund(balance_from_record(rec), count))


# ── Current slot ────────────────────────────────────────────────────
@router.get("/attendance/current-slot", response_model=CurrentSlotResponse)
async def current_slot(
    at: time | None = Query(default=None, description="Time of day (HH:MM); defaults to now"),
    rules: AttendanceSettings = Depends(get_rules_settings),
) -> CurrentSlotResponse:
    """Which slot is open at a time of day, and whether it is past its half-day cutoff."""
    at = at or local_now().time()
    open_slot = find_open_slot(rules, at)
    if open_slot is None:
        return CurrentSlotResponse(
            at=format_hhmm(at),
            slot=None,
            past_half_day=False,
            message="Outside attendance hours",
        )
    label = open_slot.name.value.capitalize()
    return CurrentSlotResponse(
        at=format_hhmm(at),
        slot=open_slot.name,
        past_half_day=open_slot.past_half_day,
        message=f"Current slot: {label}{' (Half Day)' if open_slot.past_half_day else ''}",
    )


# ── Mark attendance ─────────────────────────────────────────────────
@router.post("/attendance", response_model=MarkAttendanceResponse)
async def mark_attendance(
    body: MarkAttendanceRequest,
    db: AsyncSession = Depends(get_db),
    rules: AttendanceSettings = Depends(get_rules_settings),
) -> MarkAttendanceResponse:
    """Record the open slot for a staff member's day (upsert by staff and date).

    Rejected before any write when the date is in the future, no slot is
    open at the check-in time, or full presence is requested after the
    slot's half-day cutoff.
    """
    staff = await _staff_or_404(db, body.staff_id)
    # Rollback expires ORM instances; only plain values are used past this point.
    staff_id = staff.id
    now = local_now()
    at = body.time or now.time()

    for attempt in range(1, _WRITE_ATTEMPTS + 1):
        existing_rec = await get_attendance(db, staff_id, body.date)
        existing = to_daily(existing_rec) if existing_rec else None

        slot, daily = mark_slot(
            rules,
            staff_id=staff_id,
            day=body.date,
            at=at,
            requested=body.status,
            today=now.date(),
            existing=existing,
            notes=body.notes,
        )

        try:
            if existing is not None and existing.status is DailyStatus.PAID_LEAVE:
                await _refund_paid_days(db, staff_id, [body.date], rules)
            rec = await upsert_attendance(db, daily)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            if attempt == _WRITE_ATTEMPTS:
                raise
            logger.info("Concurrent write for staff %d on %s; retrying", staff_id, body.date)
            continue
        break

    await db.refresh(rec)
    logger.info(
        "Marked %s slot %s for staff %d on %s at %s -> %s",
        slot.value,
        body.status.value,
        staff_id,
        body.date,
        format_hhmm(at),
        daily.status.value,
    )
    return MarkAttendanceResponse(success=True, slot=slot, attendance=_read(rec))


# ── Leave ───────────────────────────────────────────────────────────
async def _write_leave(
    db: AsyncSession,
    staff_id: int,
    body: LeaveRequest,
    days: list[date],
    rules: AttendanceSettings,
) -> tuple[list[AttendanceRecord], LeaveBalanceRecord]:
    """Charge or refund the balance and upsert one leave row per day (no commit).

    Raises the rule error of a rejected paid-leave request after rolling
    back, so nothing is written.
    """
    existing = {
        rec.date: DailyStatus(rec.status)
        for rec in await load_attendance(db, body.start_date, body.end_date, staff_id)
    }
    previously_paid = [d for d in days if existing.get(d.isoformat()) is DailyStatus.PAID_LEAVE]

    balance_rec = await get_or_open_balance(db, staff_id, body.start_date.year, rules)
    balance = balance_from_record(balance_rec)

    if body.leave_type is LeaveType.PAID:
        to_charge = len(days) - len(previously_paid)
        decision = validate_leave_request(
            staff_id,
            body.start_date,
            body.end_date,
            body.leave_type,
            balance,
            rules,
            required_days=to_charge,
        )
        if not decision.accepted:
            logger.info("Leave rejected for staff %d: %s", staff_id, decision.reason)
            await db.rollback()
        decision.raise_for_rejection()
        balance = charge(balance, to_charge)
    else:
        balance = refund(balance, len(previously_paid))
    store_balance(balance_rec, balance)

    records = []
    for day in days:
        daily = leave_day(staff_id, day, body.leave_type, body.reason, body.notes)
        records.append(await upsert_attendance(db, daily))
    return records, balance_rec


@router.post("/attendance/leave", response_model=LeaveResponse)
async def request_leave(
    body: LeaveRequest,
    db: AsyncSession = Depends(get_db),
    rules: AttendanceSettings = Depends(get_rules_settings),
) -> LeaveResponse:
    """Record paid or unpaid leave for every working day in a date range.

    Paid leave is checked against the remaining balance and the monthly
    cap; days already on paid leave are not charged twice.
    """
    staff = await _staff_or_404(db, body.staff_id)
    staff_id = staff.id
    ensure_not_future(body.end_date, local_today())

    days = leave_days(rules, body.start_date, body.end_date)
    if not days:
        raise InvalidDateError("Leave range contains no working days")

    for attempt in range(1, _WRITE_ATTEMPTS + 1):
        try:
            records, balance_rec = await _write_leave(db, staff_id, body, days, rules)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            if attempt == _WRITE_ATTEMPTS:
                raise
            logger.info("Concurrent leave write for staff %d; retrying", staff_id)
            continue
        break

    for rec in records:
        await db.refresh(rec)
    await db.refresh(balance_rec)

    logger.info(
        "Granted %d day(s) of %s leave to staff %d (%s to %s)",
        len(days),
        body.leave_type.value,
        staff_id,
        body.start_date,
        body.end_date,
    )
    return LeaveResponse(
        success=True,
        leave_type=body.leave_type,
        days=len(days),
        records=[_read(rec) for rec in records],
        balance=balance_from_record(balance_rec),
    )


# ── Listing (pull interface) ────────────────────────────────────────
@router.get("/attendance", response_model=list[AttendanceRead])
async def list_attendance(
    start: date = Query(...),
    end: date = Query(...),
    staff_id: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> list[AttendanceRead]:
    """Daily records in ``[start, end]``; clients poll this to refresh."""
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    if (end - start).days >= _MAX_RANGE_DAYS:
        raise HTTPException(
            status_code=400, detail=f"Range must not exceed {_MAX_RANGE_DAYS} days"
        )
    return [_read(rec) for rec in await load_attendance(db, start, end, staff_id)]


# ── Delete ──────────────────────────────────────────────────────────
@router.delete("/attendance/{attendance_id}", response_model=DeleteResponse)
async def delete_attendance(
    attendance_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    """Delete one daily record; a paid-leave day goes back to the balance."""
    result = await db.execute(
        select(AttendanceRecord).where(AttendanceRecord.id == attendance_id)
    )
    rec = result.scalar_one_or_none()
    if rec is None:
        raise HTTPException(status_code=404, detail="Attendance record not found")

    if rec.status == DailyStatus.PAID_LEAVE.value:
        balance_result = await db.execute(
            select(LeaveBalanceRecord).where(
                LeaveBalanceRecord.staff_id == rec.staff_id,
                LeaveBalanceRecord.year == date.fromisoformat(rec.date).year,
            )
        )
        balance_rec = balance_result.scalar_one_or_none()
        if balance_rec is not None:
            store_balance(balance_rec, refund(balance_from_record(balance_rec), 1))

    staff_id, day = rec.staff_id, rec.date
    await db.delete(rec)
    await db.commit()
    logger.info("Deleted attendance %d (staff %d, %s)", attendance_id, staff_id, day)
    return DeleteResponse(success=True, message=f"Attendance for {day} deleted")
