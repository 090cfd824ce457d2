from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from insulin_calc.core.constants import ROUNDING_STEPS
from insulin_calc.models.calculation import CalculationInput, CalculationResult, DoseOutcome, RawNumber
from insulin_calc.models.enums import GlucoseUnit, Theme
from insulin_calc.models.profile import Profile
from insulin_calc.models.settings import AppSettings
from insulin_calc.models.state import AppState, ProfileDraft
from insulin_calc.services import persistence
from insulin_calc.services.dose import compute_dose
from insulin_calc.services.scheduler import select_active
from insulin_calc.services.store import KeyValueStore
from insulin_calc.services.units import to_internal

logger = logging.getLogger(__name__)

UNLOCKABLE_FIELDS = ("carb_ratio", "correction_factor", "target")


class CalculatorError(Exception):
    pass


class ProfileError(CalculatorError):
    pass


class ProfileNotFoundError(ProfileError):
    def __init__(self, profile_id: Optional[str]):
        super().__init__(f"Profile not found: {profile_id}")
        self.profile_id = profile_id


class LastProfileError(ProfileError):
    def __init__(self) -> None:
        super().__init__("The last remaining profile cannot be deleted")


class NoDraftError(ProfileError):
    def __init__(self) -> None:
        super().__init__("No profile is being created or edited")


class InvalidProfileError(ProfileError):
    def __init__(self, errors: list[dict[str, Any]]):
        super().__init__(f"Invalid profile: {errors}")
        self.errors = errors


class InvalidSettingError(CalculatorError):
    pass


def _revalidate(profile: Profile, **updates: Any) -> Profile:
    try:
        return Profile.model_validate({**profile.model_dump(), **updates})
    except ValidationError as exc:
        raise InvalidProfileError(exc.errors(include_url=False)) from exc


def _display_to_internal(value: RawNumber, unit: GlucoseUnit) -> RawNumber:
    # Unparseable text passes through so the calculator can name the field
    if value is None or isinstance(value, bool):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return value
    return to_internal(number, unit)


def _optional_display_number(value: RawNumber, unit: Optional[GlucoseUnit]) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidProfileError([{"input": value, "msg": "not a number"}]) from exc
    return to_internal(number, unit) if unit is not None else number


class CalculatorApp:
    """
    Owns the mutable application state and writes it through to the store
    after every user action. The scheduling and dose functions it calls stay
    pure.
    """

    def __init__(self, store: KeyValueStore, state: Optional[AppState] = None):
        self.store = store
        self.state = state or AppState()

    @classmethod
    def initialize(cls, store: KeyValueStore, now_minute_of_day: int) -> CalculatorApp:
        persistence.migrate_legacy_presets(store)
        state = persistence.load_state(store)

        profiles, needs_save = persistence.backfill_default_windows(state.profiles)
        if not profiles:
            profiles = persistence.default_profiles()
            state.active_profile_id = profiles[0].id
            needs_save = True
        state.profiles = profiles

        state.active_profile_id = select_active(profiles, now_minute_of_day, state.active_profile_id)
        app = cls(store, state)
        if needs_save:
            app.save()
        logger.debug("Initialized with %d profiles, active=%s", len(profiles), state.active_profile_id)
        return app

    def save(self) -> None:
        persistence.save_state(self.store, self.state)

    # --- Profiles ---

    @property
    def active_profile(self) -> Profile:
        profile = self.state.active_profile
        if profile is None:
            raise ProfileNotFoundError(self.state.active_profile_id)
        return profile

    def _require(self, profile_id: str) -> Profile:
        profile = self.state.get_profile(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return profile

    def _replace(self, updated: Profile) -> None:
        self.state.profiles = [updated if p.id == updated.id else p for p in self.state.profiles]

    def switch_profile(self, profile_id: str) -> Profile:
        profile = self._require(profile_id)
        if profile_id != self.state.active_profile_id:
            self.state.active_profile_id = profile_id
            self.save()
        return profile

    def begin_new_profile(self) -> Profile:
        profile = Profile.create(f"Profile {len(self.state.profiles) + 1}")
        self.state.draft = ProfileDraft(profile=profile, is_new=True)
        return profile

    def begin_edit(self, profile_id: str) -> Profile:
        profile = self._require(profile_id)
        self.state.draft = ProfileDraft(profile=profile.model_copy(), is_new=False)
        return profile

    def cancel_draft(self) -> None:
        self.state.draft = None

    def save_draft(
        self,
        name: Optional[str] = None,
        start_time: Optional[int | str] = None,
        end_time: Optional[int | str] = None,
        carb_ratio: RawNumber = None,
        correction_factor: RawNumber = None,
        target: RawNumber = None,
    ) -> Profile:
        """
        Commit the pending create/edit. Glucose values are in the display
        unit; blank values clear the field, a blank name keeps the old one.
        """
        draft = self.state.draft
        if draft is None:
            raise NoDraftError()

        base = draft.profile
        if not draft.is_new:
            # Edit the current version; trend or constants may have changed meanwhile
            base = self.state.get_profile(draft.profile.id)
            if base is None:
                self.state.draft = None
                raise ProfileNotFoundError(draft.profile.id)

        unit = self.state.settings.units
        updated = _revalidate(
            base,
            name=name if name and name.strip() else base.name,
            start_time=start_time,
            end_time=end_time,
            carb_ratio=_optional_display_number(carb_ratio, None),
            correction_factor=_optional_display_number(correction_factor, unit),
            target=_optional_display_number(target, unit),
        )

        if draft.is_new:
            self.state.profiles.append(updated)
        else:
            self._replace(updated)

        self.state.draft = None
        self.save()
        return updated

    def delete_profile(self, profile_id: str) -> None:
        self._require(profile_id)
        if len(self.state.profiles) <= 1:
            raise LastProfileError()

        self.state.profiles = [p for p in self.state.profiles if p.id != profile_id]
        if self.state.active_profile_id == profile_id:
            self.state.active_profile_id = self.state.profiles[0].id
        if self.state.draft is not None and self.state.draft.profile.id == profile_id:
            self.state.draft = None
        self.save()

    # --- Settings ---

    def _update_settings(self, **changes: Any) -> AppSettings:
        try:
            settings = AppSettings.model_validate({**self.state.settings.model_dump(), **changes})
        except ValidationError as exc:
            raise InvalidSettingError(str(exc)) from exc
        self.state.settings = settings
        self.save()
        return settings

    def set_units(self, unit: GlucoseUnit | str) -> AppSettings:
        return self._update_settings(units=unit)

    def set_rounding(self, step: float) -> AppSettings:
        if step not in ROUNDING_STEPS:
            raise InvalidSettingError(f"Rounding step must be one of {ROUNDING_STEPS}: {step!r}")
        return self._update_settings(rounding=step)

    def set_theme(self, theme: Theme | str) -> AppSettings:
        return self._update_settings(theme=theme)

    # --- Trend and locked fields ---

    def select_trend(self, adjustment_mgdl: float) -> Optional[float]:
        """Select a trend; selecting the current one again clears it."""
        profile = self.active_profile
        value: Optional[float] = adjustment_mgdl
        if profile.trend_adjustment is not None and profile.trend_adjustment == adjustment_mgdl:
            value = None
        self._replace(_revalidate(profile, trend_adjustment=value))
        self.save()
        return value

    def clear_trend(self) -> None:
        self._replace(_revalidate(self.active_profile, trend_adjustment=None))
        self.save()

    def unlock_field(self, field: str) -> None:
        if field not in UNLOCKABLE_FIELDS:
            raise ValueError(f"Field cannot be unlocked: {field}")
        self._replace(_revalidate(self.active_profile, **{field: None}))
        self.save()

    # --- Calculation ---

    def calculate(
        self,
        carbs_to_eat: RawNumber,
        current_glucose: RawNumber,
        carb_ratio: RawNumber = None,
        correction_factor: RawNumber = None,
        target: RawNumber = None,
    ) -> DoseOutcome:
        """
        Run a calculation from display-unit values. Constants left as None
        come from the active profile. On success the constants used are
        written back to the profile.
        """
        profile = self.active_profile
        unit = self.state.settings.units

        data = CalculationInput(
            carbs_to_eat=carbs_to_eat,
            current_glucose=_display_to_internal(current_glucose, unit),
            carb_ratio=profile.carb_ratio if carb_ratio is None else carb_ratio,
            correction_factor=(
                profile.correction_factor
                if correction_factor is None
                else _display_to_internal(correction_factor, unit)
            ),
            target=profile.target if target is None else _display_to_internal(target, unit),
            trend_adjustment=profile.trend_adjustment,
        )
        outcome = compute_dose(data, self.state.settings.rounding)

        if isinstance(outcome, CalculationResult):
            operands = outcome.operands
            self._replace(
                _revalidate(
                    profile,
                    carb_ratio=operands.carb_ratio,
                    correction_factor=operands.correction_factor,
                    target=operands.target,
                )
            )
            self.save()
        return outcome
