from types import SimpleNamespace

import pytest

from insulin_calc.models.profile import Profile
from insulin_calc.services.scheduler import (
    TimelineSegment,
    is_window_active,
    minutes_since_start,
    resolve_active,
    select_active,
    timeline_segments,
)


def _window(pid: str, start, end):
    return SimpleNamespace(id=pid, start_time=start, end_time=end)


@pytest.mark.parametrize(
    "now, expected",
    [(359, False), (360, True), (719, True), (1199, True), (1200, False)],
)
def test_daytime_window_boundaries(now, expected):
    # 06:00 - 20:00
    assert is_window_active(360, 1200, now) is expected


@pytest.mark.parametrize(
    "now, expected",
    [(1199, False), (1200, True), (1439, True), (0, True), (359, True), (360, False), (700, False)],
)
def test_overnight_window_wraps_midnight(now, expected):
    # 20:00 - 06:00
    assert is_window_active(1200, 360, now) is expected


def test_equal_start_and_end_never_active():
    assert not any(is_window_active(600, 600, now) for now in (0, 599, 600, 601, 1439))


def test_minutes_since_start_wraps():
    assert minutes_since_start(1200, 30) == 270
    assert minutes_since_start(360, 370) == 10


def test_resolve_active_picks_matching_profile():
    profiles = [_window("day", 360, 1200), _window("night", 1200, 360)]
    assert resolve_active(profiles, 720) == "day"
    assert resolve_active(profiles, 1300) == "night"
    assert resolve_active(profiles, 60) == "night"


def test_resolve_active_prefers_most_recently_started():
    # Background all-day window and a lunch window that started 10 minutes ago
    profiles = [_window("all_day", 0, 1439), _window("lunch", 710, 840)]
    assert resolve_active(profiles, 720) == "lunch"
    assert resolve_active(profiles, 900) == "all_day"


def test_resolve_active_tie_break_across_midnight():
    # Started 23:00 vs started 01:00; at 01:30 the 01:00 one is more recent
    profiles = [_window("late", 1380, 480), _window("early", 60, 480)]
    assert resolve_active(profiles, 90) == "early"


def test_resolve_active_exact_tie_keeps_list_order():
    profiles = [_window("first", 600, 700), _window("second", 600, 800)]
    assert resolve_active(profiles, 650) == "first"


def test_resolve_active_empty_and_untimed():
    assert resolve_active([], 720) is None
    untimed = [_window("a", None, None), _window("b", 600, None)]
    assert resolve_active(untimed, 720) is None


def test_resolve_active_no_match():
    assert resolve_active([_window("lunch", 660, 840)], 100) is None


def test_resolve_active_ignores_malformed_entries():
    profiles = [_window("bad", "06:00", "20:00"), object(), _window("ok", 0, 600)]
    assert resolve_active(profiles, 300) == "ok"


def test_resolve_active_is_pure():
    profiles = [_window("day", 360, 1200), _window("night", 1200, 360)]
    snapshot = [(p.id, p.start_time, p.end_time) for p in profiles]
    first = resolve_active(profiles, 1250)
    assert resolve_active(profiles, 1250) == first
    assert [(p.id, p.start_time, p.end_time) for p in profiles] == snapshot


def test_resolve_active_accepts_profile_models():
    day = Profile.create("Day", "06:00", "20:00")
    night = Profile.create("Night", "20:00", "06:00")
    assert resolve_active([day, night], 21 * 60) == night.id


def test_select_active_fallback_chain():
    profiles = [_window("a", None, None), _window("b", None, None), _window("lunch", 660, 840)]
    assert select_active(profiles, 700, remembered_id="b") == "lunch"
    assert select_active(profiles, 100, remembered_id="b") == "b"
    assert select_active(profiles, 100, remembered_id="gone") == "a"
    assert select_active(profiles, 100) == "a"
    assert select_active([], 100, remembered_id="a") is None


def test_timeline_segments_split_overnight():
    profiles = [
        _window("day", 360, 1200),
        _window("night", 1200, 360),
        _window("untimed", None, None),
        _window("midnight", 0, 0),
    ]
    assert timeline_segments(profiles) == [
        TimelineSegment("day", 360, 1200),
        TimelineSegment("night", 1200, 1440),
        TimelineSegment("night", 0, 360),
    ]
