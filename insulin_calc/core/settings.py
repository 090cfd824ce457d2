import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from insulin_calc.core.constants import DEFAULT_ROUNDING_STEP


class DataConfig(BaseModel):
    data_dir: Path = Field(default=Path("data"))
    store_filename: str = Field(default="storage.json", min_length=1)

    @field_validator("data_dir", mode="before")
    def _expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser()

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.store_filename


class ClockConfig(BaseModel):
    timezone: str = Field(default="UTC", min_length=1)


class CalculatorConfig(BaseModel):
    # Used when no rounding step has been persisted yet
    default_rounding_step: float = Field(default=DEFAULT_ROUNDING_STEP, gt=0)


class Settings(BaseModel):
    data: DataConfig = Field(default_factory=DataConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    calculator: CalculatorConfig = Field(default_factory=CalculatorConfig)


DEFAULT_CONFIG_PATH = Path(os.environ.get("CONFIG_PATH", "config/config.json"))


def _load_file_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid JSON configuration at {path}") from exc


def _load_env() -> dict[str, Any]:
    env_config: dict[str, Any] = {}

    data_dir = os.environ.get("DATA_DIR")
    if data_dir:
        env_config.setdefault("data", {})["data_dir"] = data_dir

    tz = os.environ.get("INSULIN_CALC_TZ")
    if tz:
        env_config.setdefault("clock", {})["timezone"] = tz

    step = os.environ.get("DEFAULT_ROUNDING_STEP")
    if step:
        env_config.setdefault("calculator", {})["default_rounding_step"] = step

    return env_config


def merge_settings(env_config: dict[str, Any], file_config: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for section in ("data", "clock", "calculator"):
        merged[section] = {**file_config.get(section, {}), **env_config.get(section, {})}
    return merged


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    env_config = _load_env()
    file_config = _load_file_config(DEFAULT_CONFIG_PATH)
    merged = merge_settings(env_config=env_config, file_config=file_config)
    try:
        return Settings.model_validate(merged)
    except ValidationError as exc:
        raise RuntimeError(f"Configuration error: {exc}") from exc


__all__ = ["Settings", "get_settings"]
