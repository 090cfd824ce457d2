import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from insulin_calc.core import settings as settings_module  # noqa: E402
from insulin_calc.services.store import KeyValueStore  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    for var in ("DATA_DIR", "INSULIN_CALC_TZ", "DEFAULT_ROUNDING_STEP"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(settings_module, "DEFAULT_CONFIG_PATH", tmp_path / "missing-config.json")
    settings_module.get_settings.cache_clear()
    yield
    settings_module.get_settings.cache_clear()


@pytest.fixture()
def store(tmp_path) -> KeyValueStore:
    return KeyValueStore(tmp_path / "data" / "storage.json")
