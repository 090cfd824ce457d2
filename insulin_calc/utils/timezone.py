import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from insulin_calc.core.constants import MINUTES_PER_DAY
from insulin_calc.core.settings import get_settings

logger = logging.getLogger(__name__)


def get_local_timezone() -> ZoneInfo:
    """
    Returns the configured timezone, falling back to UTC when the name is unknown.
    """
    name = get_settings().clock.timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


def to_local(dt: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """
    Converts a datetime to the local timezone.
    Assumes naive datetimes are UTC.
    """
    if tz is None:
        tz = get_local_timezone()

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(tz)


def now_minute_of_day(now: Optional[datetime] = None, tz: Optional[ZoneInfo] = None) -> int:
    """Wall-clock minute of day in [0, 1440)."""
    if now is None:
        now = datetime.now(timezone.utc)
    local_dt = to_local(now, tz)
    return local_dt.hour * 60 + local_dt.minute


def parse_hhmm(value: str) -> int:
    """
    "HH:MM" -> minute of day. Raises ValueError on anything else.
    """
    hours, sep, minutes = value.strip().partition(":")
    if not sep:
        raise ValueError(f"Expected HH:MM, got {value!r}")
    h, m = int(hours), int(minutes)
    if not (0 <= h < 24 and 0 <= m < 60):
        raise ValueError(f"Time out of range: {value!r}")
    return h * 60 + m


def format_hhmm(minute: int) -> str:
    minute %= MINUTES_PER_DAY
    return f"{minute // 60:02d}:{minute % 60:02d}"


def format_time_12(minute: Optional[int]) -> str:
    """
    Returns h:MM AM/PM, or "" when the time is not set.
    """
    if minute is None:
        return ""
    minute %= MINUTES_PER_DAY
    hour, mins = divmod(minute, 60)
    ampm = "PM" if hour >= 12 else "AM"
    h12 = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{h12}:{mins:02d} {ampm}"
