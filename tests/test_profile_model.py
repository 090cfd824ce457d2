import math

import pytest
from pydantic import ValidationError

from insulin_calc.models.profile import Profile
from insulin_calc.models.settings import AppSettings
from insulin_calc.models.enums import GlucoseUnit, Theme


def test_create_parses_hhmm():
    p = Profile.create("Night", "20:00", "06:00")
    assert p.start_time == 1200
    assert p.end_time == 360
    assert p.has_window
    assert p.id


def test_blank_name_gets_default():
    assert Profile.create("   ").name == "Profile"


def test_window_must_be_complete():
    with pytest.raises(ValidationError):
        Profile(start_time=600)


def test_time_out_of_range():
    with pytest.raises(ValidationError):
        Profile(start_time=1440, end_time=0)
    with pytest.raises(ValidationError):
        Profile(start_time="25:00", end_time="06:00")


def test_legacy_storage_form():
    p = Profile.from_storage(
        {
            "id": "lk3x9a1b2",
            "name": "Day",
            "startTime": "06:00",
            "endTime": "20:00",
            "carbRatio": "10",
            "correctionFactor": 50,
            "target": "",
            "dexcomValue": None,
        }
    )
    assert p.id == "lk3x9a1b2"
    assert p.carb_ratio == 10.0
    assert p.correction_factor == 50.0
    assert p.target is None
    assert p.trend_adjustment is None


def test_nan_trend_means_unset():
    assert Profile(trend_adjustment=math.nan).trend_adjustment is None
    assert Profile(trend_adjustment=0).trend_adjustment == 0


def test_incomplete_stored_window_is_cleared():
    p = Profile.from_storage({"id": "x", "name": "Lunch", "startTime": "11:00", "endTime": ""})
    assert not p.has_window


def test_storage_round_trip_keeps_legacy_keys():
    p = Profile.create("Lunch", 660, 840)
    stored = p.to_storage()
    assert stored["startTime"] == "11:00"
    assert stored["carbRatio"] == ""
    assert stored["dexcomValue"] is None
    assert Profile.from_storage(stored) == p


def test_settings_merge_keeps_defaults_for_bad_values():
    merged = AppSettings.merge({"units": "mmol", "rounding": -1, "theme": "neon", "extra": 1})
    assert merged.units is GlucoseUnit.MMOL
    assert merged.rounding == 0.5
    assert merged.theme is Theme.SYSTEM


def test_settings_merge_non_dict():
    assert AppSettings.merge("garbage") == AppSettings()
