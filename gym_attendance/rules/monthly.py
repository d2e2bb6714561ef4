"""
Monthly attendance aggregation.

The denominator is the number of calendar days in the month, not the
number of rows: a day without any record adds nothing to the numerator
and still counts in ``total_working_days``.
"""

from __future__ import annotations

import calendar
import datetime as dt
from collections import Counter
from collections.abc import Iterable

from gym_attendance.rules.types import (DailyAttendance, DailyStatus,
                                        MonthlyAttendance)


def days_in_month(year: int, month: int) -> int:
    if month < 1 or month > 12:
        raise ValueError("Month must be 1-12")
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[dt.date, dt.date]:
    return dt.date(year, month, 1), dt.date(year, month, days_in_month(year, month))


def aggregate_month(
    staff_id: int,
    year: int,
    month: int,
    rows: Iterable[DailyAttendance],
    total_days: int | None = None,
) -> MonthlyAttendance:
    """Fold one staff member's daily rows for a month into a summary.

    Rows for other staff or other months are ignored. Rows are keyed by
    date, so a repeated date counts once.
    """
    if total_days is None:
        total_days = days_in_month(year, month)

    by_date: dict[dt.date, DailyStatus] = {}
    for row in rows:
        if row.staff_id != staff_id:
            continue
        if row.date.year != year or row.date.month != month:
            continue
        by_date[row.date] = row.status

    counts = Counter(by_date.values())
    present = counts[DailyStatus.PRESENT]
    half = counts[DailyStatus.HALF_DAY]
    paid = counts[DailyStatus.PAID_LEAVE]
    unpaid = counts[DailyStatus.UNPAID_LEAVE]

    credited = present + half * 0.5 + paid + unpaid
    percentage = credited / total_days * 100 if total_days > 0 else 0.0

    return MonthlyAttendance(
        staff_id=staff_id,
        month=month,
        year=year,
        total_days=total_days,
        present_days=present,
        half_days=half,
        absent_days=counts[DailyStatus.ABSENT],
        paid_leave_days=paid,
        unpaid_leave_days=unpaid,
        total_working_days=total_days,
        attendance_percentage=percentage,
    )


def aggregate_month_for_roster(
    staff_ids: Iterable[int],
    year: int,
    month: int,
    rows: Iterable[DailyAttendance],
) -> list[MonthlyAttendance]:
    """One summary per staff id, including staff without any rows."""
    rows = list(rows)
    total_days = days_in_month(year, month)
    return [
        aggregate_month(staff_id, year, month, rows, total_days=total_days)
        for staff_id in staff_ids
    ]
