"""
Daily status resolution and the slot-marking transition.

Slot outcomes (present / late / absent) and the daily status
(present / halfDay / absent / paidLeave / unpaidLeave) are kept as
separate tags: a late slot is what turns a day into a half day.
"""

from __future__ import annotations

import datetime as dt

from gym_attendance.rules.errors import (HalfDayLimitExceeded,
                                         InvalidDateError,
                                         OutsideCapturableWindow)
from gym_attendance.rules.slots import (OpenSlot, classify_check_in,
                                        find_open_slot, late_minutes)
from gym_attendance.rules.types import (AttendanceSettings, DailyAttendance,
                                        DailyStatus, LeaveType, SlotName,
                                        SlotOutcome, SlotStatus)


def resolve_daily_status(
    morning: SlotOutcome | None,
    evening: SlotOutcome | None,
    leave_type: LeaveType | None = None,
) -> DailyStatus:
    if leave_type is not None:
        return leave_type.daily_status

    morning_status = morning.status if morning else SlotStatus.ABSENT
    evening_status = evening.status if evening else SlotStatus.ABSENT

    if morning_status is SlotStatus.PRESENT and evening_status is SlotStatus.PRESENT:
        return DailyStatus.PRESENT
    if SlotStatus.PRESENT in (morning_status, evening_status):
        return DailyStatus.HALF_DAY
    if SlotStatus.LATE in (morning_status, evening_status):
        return DailyStatus.HALF_DAY
    return DailyStatus.ABSENT


def ensure_not_future(day: dt.date, today: dt.date) -> None:
    if day > today:
        raise InvalidDateError(
            f"Cannot mark attendance for future dates ({day.isoformat()})"
        )


def build_slot_outcome(
    requested: DailyStatus, open_slot: OpenSlot, at: dt.time, allowed_buffer: int
) -> SlotOutcome:
    """Turn the operator's choice for the open slot into a slot outcome.

    ``present`` after the half-day cutoff is refused rather than silently
    downgraded; ``halfDay`` records the slot as late with its check-in.
    """
    at = at.replace(second=0, microsecond=0, tzinfo=None)

    if requested is DailyStatus.PRESENT:
        if open_slot.past_half_day:
            raise HalfDayLimitExceeded(open_slot.name, open_slot.config.half_day_limit)
        return classify_check_in(open_slot.config, at, allowed_buffer)
    if requested is DailyStatus.HALF_DAY:
        late = late_minutes(open_slot.config, at)
        return SlotOutcome(
            status=SlotStatus.LATE,
            check_in_time=at,
            late_minutes=late if late > 0 else None,
        )
    if requested is DailyStatus.ABSENT:
        return SlotOutcome(status=SlotStatus.ABSENT)
    raise ValueError(f"{requested.value} is recorded through a leave request")


def mark_slot(
    settings: AttendanceSettings,
    staff_id: int,
    day: dt.date,
    at: dt.time,
    requested: DailyStatus,
    today: dt.date,
    existing: DailyAttendance | None = None,
    notes: str | None = None,
) -> tuple[SlotName, DailyAttendance]:
    """Apply one slot capture to a day and return the replacement record.

    The other slot's outcome is carried over from ``existing`` unless that
    record was a leave day, whose slots are cleared.
    """
    ensure_not_future(day, today)

    open_slot = find_open_slot(settings, at)
    if open_slot is None:
        raise OutsideCapturableWindow(at)

    outcome = build_slot_outcome(requested, open_slot, at, settings.allowed_buffer)

    slots: dict[SlotName, SlotOutcome | None] = {
        SlotName.MORNING: None,
        SlotName.EVENING: None,
    }
    if existing is not None and not existing.status.is_leave:
        slots[SlotName.MORNING] = existing.morning_slot
        slots[SlotName.EVENING] = existing.evening_slot
    slots[open_slot.name] = outcome

    record = DailyAttendance(
        staff_id=staff_id,
        date=day,
        morning_slot=slots[SlotName.MORNING],
        evening_slot=slots[SlotName.EVENING],
        status=resolve_daily_status(slots[SlotName.MORNING], slots[SlotName.EVENING]),
        notes=notes if notes is not None else (existing.notes if existing else None),
    )
    return open_slot.name, record


def leave_day(
    staff_id: int,
    day: dt.date,
    leave_type: LeaveType,
    reason: str,
    notes: str | None = None,
) -> DailyAttendance:
    """A leave day: slot outcomes are cleared, not evaluated."""
    return DailyAttendance(
        staff_id=staff_id,
        date=day,
        status=resolve_daily_status(None, None, leave_type),
        leave_reason=reason,
        notes=notes,
    )
