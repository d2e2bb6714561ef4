"""
Studio wall clock.

Slot windows and the "no future dates" rule are evaluated on the studio's
local time, derived from UTC and ``TIMEZONE_OFFSET``.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from gym_attendance.core.config import settings


def parse_offset(tz_offset: str) -> timezone:
    """Turn ``+HH:MM`` / ``-HH:MM`` into a fixed-offset timezone."""
    sign = 1 if tz_offset[0] == "+" else -1
    offset_parts = tz_offset[1:].split(":")
    offset_hours = int(offset_parts[0])
    offset_mins = int(offset_parts[1]) if len(offset_parts) > 1 else 0
    return timezone(timedelta(hours=sign * offset_hours, minutes=sign * offset_mins))


def local_now() -> datetime:
    return datetime.now(timezone.utc).astimezone(parse_offset(settings.TIMEZONE_OFFSET))


def local_today() -> date:
    return local_now().date()
