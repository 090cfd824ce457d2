from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from insulin_calc.core.constants import DEFAULT_ROUNDING_STEP
from insulin_calc.models.enums import GlucoseUnit, Theme

logger = logging.getLogger(__name__)


class AppSettings(BaseModel):
    theme: Theme = Theme.SYSTEM
    units: GlucoseUnit = GlucoseUnit.MGDL
    rounding: float = Field(default=DEFAULT_ROUNDING_STEP, gt=0, allow_inf_nan=False)

    @classmethod
    def merge(cls, data: Any, base: AppSettings | None = None) -> AppSettings:
        """
        Overlay stored values on top of `base` (defaults when omitted).
        Keys that fail validation keep the base value.
        """
        merged = (base or cls()).model_dump()
        if not isinstance(data, dict):
            logger.warning("Ignoring stored settings of type %s", type(data).__name__)
            return cls.model_validate(merged)

        for key in cls.model_fields:
            if key not in data:
                continue
            candidate = {**merged, key: data[key]}
            try:
                cls.model_validate(candidate)
            except ValidationError:
                logger.warning("Ignoring invalid stored setting %s=%r", key, data[key])
                continue
            merged = candidate
        return cls.model_validate(merged)

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
