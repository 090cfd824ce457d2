import json
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from insulin_calc.core import settings as settings_module
from insulin_calc.utils.timezone import format_hhmm, format_time_12, now_minute_of_day, parse_hhmm


def test_defaults_without_config_file():
    cfg = settings_module.get_settings()
    assert cfg.data.store_path == Path("data") / "storage.json"
    assert cfg.clock.timezone == "UTC"
    assert cfg.calculator.default_rounding_step == 0.5


def test_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"data": {"data_dir": "/srv/ic"}, "clock": {"timezone": "Europe/Madrid"}}),
        encoding="utf-8",
    )
    monkeypatch.setattr(settings_module, "DEFAULT_CONFIG_PATH", config_path)
    monkeypatch.setenv("INSULIN_CALC_TZ", "America/New_York")
    settings_module.get_settings.cache_clear()

    cfg = settings_module.get_settings()
    assert cfg.data.data_dir == Path("/srv/ic")
    assert cfg.clock.timezone == "America/New_York"


def test_invalid_json_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.json"
    config_path.write_text("{", encoding="utf-8")
    monkeypatch.setattr(settings_module, "DEFAULT_CONFIG_PATH", config_path)
    settings_module.get_settings.cache_clear()

    with pytest.raises(RuntimeError):
        settings_module.get_settings()


def test_invalid_values_raise_runtime_error(monkeypatch):
    monkeypatch.setenv("DEFAULT_ROUNDING_STEP", "-1")
    settings_module.get_settings.cache_clear()
    with pytest.raises(RuntimeError):
        settings_module.get_settings()


def test_now_minute_of_day_uses_timezone():
    noon_utc = datetime(2024, 1, 15, 12, 5, tzinfo=timezone.utc)
    assert now_minute_of_day(noon_utc, ZoneInfo("UTC")) == 725
    assert now_minute_of_day(noon_utc, ZoneInfo("Europe/Madrid")) == 785
    # Naive datetimes are treated as UTC
    assert now_minute_of_day(datetime(2024, 1, 15, 0, 30), ZoneInfo("UTC")) == 30


def test_configured_timezone(monkeypatch):
    monkeypatch.setenv("INSULIN_CALC_TZ", "Asia/Tokyo")
    settings_module.get_settings.cache_clear()
    assert now_minute_of_day(datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc)) == 540


def test_unknown_timezone_falls_back_to_utc(monkeypatch):
    monkeypatch.setenv("INSULIN_CALC_TZ", "Mars/Olympus")
    settings_module.get_settings.cache_clear()
    assert now_minute_of_day(datetime(2024, 1, 15, 3, 0, tzinfo=timezone.utc)) == 180


def test_hhmm_helpers():
    assert parse_hhmm("06:30") == 390
    assert format_hhmm(390) == "06:30"
    with pytest.raises(ValueError):
        parse_hhmm("630")
    assert format_time_12(0) == "12:00 AM"
    assert format_time_12(12 * 60 + 15) == "12:15 PM"
    assert format_time_12(None) == ""
