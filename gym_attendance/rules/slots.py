"""
Slot classification: is a check-in time inside a slot, and is it late?

All comparisons are on wall-clock hours:minutes. A slot is capturable
from ``start`` up to and including ``end + allowed_buffer``; a check-in
up to and including ``half_day_limit`` is ``present``, later ones are
``late``.
"""

from __future__ import annotations

import datetime as dt
from typing import NamedTuple

from gym_attendance.rules.errors import OutsideCapturableWindow
from gym_attendance.rules.types import (AttendanceSettings, SlotConfig,
                                        SlotName, SlotOutcome, SlotStatus,
                                        minutes_of_day)


def _time_of_day(at: dt.time | dt.datetime) -> dt.time:
    if isinstance(at, dt.datetime):
        at = at.time()
    return at.replace(second=0, microsecond=0, tzinfo=None)


def is_in_window(slot: SlotConfig, at: dt.time | dt.datetime, allowed_buffer: int) -> bool:
    m = minutes_of_day(_time_of_day(at))
    return minutes_of_day(slot.start) <= m <= minutes_of_day(slot.end) + allowed_buffer


def is_past_half_day(slot: SlotConfig, at: dt.time | dt.datetime) -> bool:
    return minutes_of_day(_time_of_day(at)) > minutes_of_day(slot.half_day_limit)


def late_minutes(slot: SlotConfig, at: dt.time | dt.datetime) -> int:
    return max(0, minutes_of_day(_time_of_day(at)) - minutes_of_day(slot.start))


def classify_check_in(
    slot: SlotConfig, at: dt.time | dt.datetime, allowed_buffer: int
) -> SlotOutcome:
    """Classify a check-in against one slot.

    Raises ``OutsideCapturableWindow`` when ``at`` is outside the slot
    window; that is "no slot open", not an absence.
    """
    at = _time_of_day(at)
    if not is_in_window(slot, at, allowed_buffer):
        raise OutsideCapturableWindow(at)

    status = SlotStatus.LATE if is_past_half_day(slot, at) else SlotStatus.PRESENT
    late = late_minutes(slot, at)
    return SlotOutcome(
        status=status,
        check_in_time=at,
        late_minutes=late if late > 0 else None,
    )


class OpenSlot(NamedTuple):
    name: SlotName
    config: SlotConfig
    past_half_day: bool


def find_open_slot(
    settings: AttendanceSettings, at: dt.time | dt.datetime
) -> OpenSlot | None:
    """Return the slot capturing ``at`` (morning wins on overlap), else ``None``."""
    for name in (SlotName.MORNING, SlotName.EVENING):
        config = settings.slot(name)
        if is_in_window(config, at, settings.allowed_buffer):
            return OpenSlot(name, config, is_past_half_day(config, at))
    return None
