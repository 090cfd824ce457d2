from __future__ import annotations

import logging
import math
import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from insulin_calc.core.constants import MINUTES_PER_DAY
from insulin_calc.utils.timezone import format_hhmm, parse_hhmm

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_NAME = "Profile"


def generate_profile_id() -> str:
    return uuid.uuid4().hex[:12]


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class Profile(BaseModel):
    """
    Named bundle of dosing constants with an optional active window.

    Times are minute-of-day. Correction factor, target and trend adjustment
    are always mg/dL; display conversion happens in services.units.
    """

    id: str = Field(default_factory=generate_profile_id, min_length=1)
    name: str = DEFAULT_PROFILE_NAME
    start_time: Optional[int] = Field(default=None, ge=0, lt=MINUTES_PER_DAY, alias="startTime")
    end_time: Optional[int] = Field(default=None, ge=0, lt=MINUTES_PER_DAY, alias="endTime")
    carb_ratio: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False, alias="carbRatio")
    correction_factor: Optional[float] = Field(
        default=None, ge=0, allow_inf_nan=False, alias="correctionFactor"
    )
    target: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    # Stored under the legacy "dexcomValue" key
    trend_adjustment: Optional[float] = Field(default=None, allow_inf_nan=False, alias="dexcomValue")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name", mode="before")
    def _default_name(cls, v: Any) -> Any:
        if _blank(v):
            return DEFAULT_PROFILE_NAME
        return v.strip() if isinstance(v, str) else v

    @field_validator("start_time", "end_time", mode="before")
    def _parse_time(cls, v: Any) -> Any:
        if _blank(v):
            return None
        if isinstance(v, str):
            return parse_hhmm(v)
        return v

    @field_validator("carb_ratio", "correction_factor", "target", mode="before")
    def _empty_constant(cls, v: Any) -> Any:
        return None if _blank(v) else v

    @field_validator("trend_adjustment", mode="before")
    def _unset_trend(cls, v: Any) -> Any:
        # Older stores wrote NaN (serialised as null) for "no trend selected"
        if _blank(v):
            return None
        if isinstance(v, float) and math.isnan(v):
            return None
        return v

    @model_validator(mode="after")
    def _window_complete(self) -> Profile:
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be set together")
        return self

    @property
    def has_window(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    @classmethod
    def create(
        cls,
        name: Optional[str] = None,
        start_time: Optional[int | str] = None,
        end_time: Optional[int | str] = None,
    ) -> Profile:
        return cls(name=name, start_time=start_time, end_time=end_time)

    @classmethod
    def from_storage(cls, data: dict[str, Any]) -> Profile:
        """
        Build a profile from its stored form. A half-set window is dropped
        rather than rejecting the whole profile.
        """
        data = dict(data)
        start, end = data.get("startTime"), data.get("endTime")
        if _blank(start) != _blank(end):
            logger.warning("Profile %s has an incomplete time window, clearing it", data.get("id"))
            data["startTime"] = None
            data["endTime"] = None
        return cls.model_validate(data)

    def to_storage(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startTime": format_hhmm(self.start_time) if self.start_time is not None else "",
            "endTime": format_hhmm(self.end_time) if self.end_time is not None else "",
            "carbRatio": self.carb_ratio if self.carb_ratio is not None else "",
            "correctionFactor": self.correction_factor if self.correction_factor is not None else "",
            "target": self.target if self.target is not None else "",
            "dexcomValue": self.trend_adjustment,
        }
