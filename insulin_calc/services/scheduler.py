from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from insulin_calc.core.constants import MINUTES_PER_DAY

logger = logging.getLogger(__name__)


class ProfileWindow(Protocol):
    id: str
    start_time: Optional[int]
    end_time: Optional[int]


@dataclass(frozen=True)
class TimelineSegment:
    profile_id: str
    start: int
    end: int


def is_window_active(start: int, end: int, now: int) -> bool:
    """
    [start, end) in minute-of-day. start > end wraps past midnight.
    """
    if start <= end:
        return start <= now < end
    return now >= start or now < end


def minutes_since_start(start: int, now: int) -> int:
    return (now - start) % MINUTES_PER_DAY


def _is_minute(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < MINUTES_PER_DAY


def resolve_active(profiles: Sequence[ProfileWindow], now_minute_of_day: int) -> Optional[str]:
    """
    Id of the timed profile active at `now_minute_of_day`, or None.

    When several windows cover `now`, the one that started most recently
    wins; exact ties keep list order. Profiles without both times are never
    auto-selected.
    """
    now = now_minute_of_day % MINUTES_PER_DAY
    best_id: Optional[str] = None
    best_distance: Optional[int] = None

    for profile in profiles or ():
        start = getattr(profile, "start_time", None)
        end = getattr(profile, "end_time", None)
        if not (_is_minute(start) and _is_minute(end)):
            continue
        if not is_window_active(start, end, now):
            continue
        distance = minutes_since_start(start, now)
        if best_distance is None or distance < best_distance:
            best_distance = distance
            best_id = getattr(profile, "id", None)

    return best_id


def select_active(
    profiles: Sequence[ProfileWindow],
    now_minute_of_day: int,
    remembered_id: Optional[str] = None,
) -> Optional[str]:
    """
    Startup fallback chain: time match, then the remembered id if it still
    exists, then the first profile.
    """
    matched = resolve_active(profiles, now_minute_of_day)
    if matched is not None:
        logger.debug("Profile %s selected by time of day", matched)
        return matched
    if remembered_id is not None and any(p.id == remembered_id for p in profiles):
        return remembered_id
    return profiles[0].id if profiles else None


def timeline_segments(profiles: Sequence[ProfileWindow]) -> list[TimelineSegment]:
    """
    Bars for the 24-hour timeline. Overnight windows split in two; zero-width
    pieces are dropped.
    """
    segments: list[TimelineSegment] = []
    for profile in profiles:
        start, end = profile.start_time, profile.end_time
        if start is None or end is None:
            continue
        if start <= end:
            pieces = [(start, end)]
        else:
            pieces = [(start, MINUTES_PER_DAY), (0, end)]
        for seg_start, seg_end in pieces:
            if seg_end > seg_start:
                segments.append(TimelineSegment(profile.id, seg_start, seg_end))
    return segments
