from __future__ import annotations

import json
import logging
import math
from typing import Any, Optional

from pydantic import ValidationError

from insulin_calc.core.constants import (
    DAY_WINDOW,
    KEY_ACTIVE_PROFILE,
    KEY_PROFILES,
    KEY_SETTINGS,
    LEGACY_KEY_DAY,
    LEGACY_KEY_NIGHT,
    NIGHT_WINDOW,
)
from insulin_calc.core.settings import get_settings
from insulin_calc.models.profile import Profile
from insulin_calc.models.settings import AppSettings
from insulin_calc.models.state import AppState
from insulin_calc.services.store import KeyValueStore

logger = logging.getLogger(__name__)

# Profiles that get a default window when stored without one
DEFAULT_WINDOWS = {"Day": DAY_WINDOW, "Night": NIGHT_WINDOW}


def get_store() -> KeyValueStore:
    return KeyValueStore(get_settings().data.store_path)


def default_settings() -> AppSettings:
    return AppSettings(rounding=get_settings().calculator.default_rounding_step)


def default_profiles() -> list[Profile]:
    return [Profile.create(name, *window) for name, window in DEFAULT_WINDOWS.items()]


def _load_json(store: KeyValueStore, key: str) -> Any:
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding corrupt stored value for %s", key)
        return None


def _lenient_number(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_profiles(data: Any) -> list[Profile]:
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning("Discarding stored profiles: expected a list, got %s", type(data).__name__)
        return []

    profiles: list[Profile] = []
    seen: set[str] = set()
    for entry in data:
        if not isinstance(entry, dict):
            logger.warning("Skipping stored profile of type %s", type(entry).__name__)
            continue
        try:
            profile = Profile.from_storage(entry)
        except ValidationError as exc:
            logger.warning("Skipping invalid stored profile %s: %s", entry.get("id"), exc.errors())
            continue
        if profile.id in seen:
            logger.warning("Skipping duplicate profile id %s", profile.id)
            continue
        seen.add(profile.id)
        profiles.append(profile)
    return profiles


def _parse_active_id(raw: Optional[str]) -> Optional[str]:
    # A null pointer was historically written out as the text "null"
    if raw is None or raw in ("", "null", "undefined"):
        return None
    return raw


def load_state(store: KeyValueStore) -> AppState:
    """
    Read profiles, settings and the active pointer. Each key is parsed on
    its own; corrupt values are discarded and logged.
    """
    profiles = _parse_profiles(_load_json(store, KEY_PROFILES))

    stored_settings = _load_json(store, KEY_SETTINGS)
    settings = default_settings()
    if stored_settings is not None:
        settings = AppSettings.merge(stored_settings, base=settings)

    return AppState(
        profiles=profiles,
        settings=settings,
        active_profile_id=_parse_active_id(store.get(KEY_ACTIVE_PROFILE)),
    )


def save_state(store: KeyValueStore, state: AppState) -> None:
    store.update(
        {
            KEY_PROFILES: json.dumps([p.to_storage() for p in state.profiles]),
            KEY_SETTINGS: json.dumps(state.settings.to_storage()),
            KEY_ACTIVE_PROFILE: state.active_profile_id or "",
        }
    )


def _apply_legacy_preset(profile: Profile, raw: Optional[str]) -> Profile:
    if raw is None:
        return profile
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring corrupt legacy preset for %s", profile.name)
        return profile
    if not isinstance(data, dict):
        return profile

    carb_ratio = _lenient_number(data.get("carbRatio"))
    updates = {
        "carb_ratio": carb_ratio if carb_ratio else None,
        "correction_factor": _lenient_number(data.get("correctionFactor")),
        "target": _lenient_number(data.get("target")),
        "trend_adjustment": _lenient_number(data.get("dexcomValue")),
    }
    try:
        return Profile.model_validate({**profile.model_dump(), **updates})
    except ValidationError as exc:
        logger.warning("Ignoring invalid legacy preset for %s: %s", profile.name, exc.errors())
        return profile


def migrate_legacy_presets(store: KeyValueStore) -> bool:
    """
    Convert the old two-preset layout (Day/Night) into the profile list.
    Returns True when a migration was written.
    """
    if store.contains(KEY_PROFILES):
        return False

    day_raw = store.get(LEGACY_KEY_DAY)
    night_raw = store.get(LEGACY_KEY_NIGHT)
    if day_raw is None and night_raw is None:
        return False

    day = _apply_legacy_preset(Profile.create("Day", *DAY_WINDOW), day_raw)
    night = _apply_legacy_preset(Profile.create("Night", *NIGHT_WINDOW), night_raw)

    save_state(store, AppState(profiles=[day, night], settings=default_settings(), active_profile_id=day.id))
    store.remove(LEGACY_KEY_DAY, LEGACY_KEY_NIGHT)
    logger.info("Migrated legacy Day/Night presets into profiles")
    return True


def backfill_default_windows(profiles: list[Profile]) -> tuple[list[Profile], bool]:
    changed = False
    result: list[Profile] = []
    for profile in profiles:
        window = DEFAULT_WINDOWS.get(profile.name)
        if window is not None and not profile.has_window:
            profile = Profile.model_validate(
                {**profile.model_dump(), "start_time": window[0], "end_time": window[1]}
            )
            changed = True
        result.append(profile)
    return result, changed
