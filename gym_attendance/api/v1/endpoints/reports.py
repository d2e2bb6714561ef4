"""
Monthly reports, leave balances and health.

Monthly summaries are recomputed on every request from the daily rows
(one query for the month) and folded in Python; nothing is cached.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gym_attendance.api.v1.deps import get_db, get_rules_settings
from gym_attendance.db.repository import (balance_from_record, load_attendance,
                                          to_daily)
from gym_attendance.models.leave_balance import LeaveBalanceRecord
from gym_attendance.models.staff import StaffMember
from gym_attendance.rules.leave import open_balance
from gym_attendance.rules.monthly import (aggregate_month,
                                          aggregate_month_for_roster,
                                          days_in_month, month_bounds)
from gym_attendance.rules.types import (AttendanceSettings, LeaveBalance,
                                        MonthlyAttendance)
from gym_attendance.schemas.attendance import (HealthResponse,
                                               MonthlyReportResponse,
                                               MonthlyStaffSummary)

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)


def _validate_month(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Month must be 1-12")
    if not 1 <= year <= 9999:
        raise HTTPException(status_code=400, detail="Year out of range")


def _summary(staff: StaffMember, monthly: MonthlyAttendance) -> MonthlyStaffSummary:
    return MonthlyStaffSummary(
        **monthly.model_dump(),
        first_name=staff.first_name,
        last_name=staff.last_name,
    )


# ── Monthly report (single query for the month) ─────────────────────
@router.get("/reports/monthly/{year}/{month}", response_model=MonthlyReportResponse)
async def monthly_report(
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
) -> MonthlyReportResponse:
    """Monthly summary for every active staff member and anyone with rows that month."""
    _validate_month(year, month)
    start, end = month_bounds(year, month)

    records = await load_attendance(db, start, end)
    ids_with_rows = {rec.staff_id for rec in records}

    staff_result = await db.execute(
        select(StaffMember)
        .where(or_(StaffMember.is_active.is_(True), StaffMember.id.in_(sorted(ids_with_rows))))
        .order_by(StaffMember.first_name, StaffMember.last_name, StaffMember.id)
    )
    roster = list(staff_result.scalars().all())

    summaries = aggregate_month_for_roster(
        [s.id for s in roster], year, month, [to_daily(rec) for rec in records]
    )

    return MonthlyReportResponse(
        year=year,
        month=month,
        total_days=days_in_month(year, month),
        staff=[_summary(staff, monthly) for staff, monthly in zip(roster, summaries)],
    )


@router.get(
    "/reports/monthly/{year}/{month}/staff/{staff_id}",
    response_model=MonthlyStaffSummary,
)
async def staff_monthly_report(
    year: int,
    month: int,
    staff_id: int,
    db: AsyncSession = Depends(get_db),
) -> MonthlyStaffSummary:
    """Monthly summary for one staff member, deactivated ones included."""
    _validate_month(year, month)
    staff = await db.get(StaffMember, staff_id)
    if staff is None:
        raise HTTPException(status_code=404, detail="Staff member not found")

    start, end = month_bounds(year, month)
    records = await load_attendance(db, start, end, staff_id)
    monthly = aggregate_month(staff_id, year, month, [to_daily(rec) for rec in records])
    return _summary(staff, monthly)


# ── Leave balance ───────────────────────────────────────────────────
@router.get("/leave-balance/{staff_id}/{year}", response_model=LeaveBalance)
async def leave_balance(
    staff_id: int,
    year: int,
    db: AsyncSession = Depends(get_db),
    rules: AttendanceSettings = Depends(get_rules_settings),
) -> LeaveBalance:
    """Paid-leave balance for a year; a year never charged shows the full allowance."""
    if await db.get(StaffMember, staff_id) is None:
        raise HTTPException(status_code=404, detail="Staff member not found")

    result = await db.execute(
        select(LeaveBalanceRecord).where(
            LeaveBalanceRecord.staff_id == staff_id,
            LeaveBalanceRecord.year == year,
        )
    )
    rec = result.scalar_one_or_none()
    if rec is None:
        return open_balance(staff_id, year, rules)
    return balance_from_record(rec)


# ── Health ──────────────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check — DB connectivity."""
    result = HealthResponse(db=False)

    try:
        await db.execute(select(1))
        result.db = True
    except Exception as e:
        logger.error("Health check DB failure: %s", e)

    return result
