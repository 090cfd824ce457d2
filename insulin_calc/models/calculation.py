from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from insulin_calc.models.enums import FieldErrorReason, SafetyBand

# Raw form values: numbers, numeric strings, "" or None
RawNumber = Union[float, int, str, None]


@dataclass
class CalculationInput:
    carbs_to_eat: RawNumber = None
    current_glucose: RawNumber = None  # mg/dL
    carb_ratio: RawNumber = None  # g/U
    correction_factor: RawNumber = None  # mg/dL/U
    target: RawNumber = None  # mg/dL
    trend_adjustment: RawNumber = None  # signed mg/dL, None = no trend


class FieldError(BaseModel):
    field: str
    reason: FieldErrorReason


class DoseRejection(BaseModel):
    ok: Literal[False] = False
    errors: list[FieldError]

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]

    def reason_for(self, field: str) -> Optional[FieldErrorReason]:
        for error in self.errors:
            if error.field == field:
                return error.reason
        return None


class DoseOperands(BaseModel):
    """Literal values that went into the arithmetic, for the audit trail."""

    carbs_to_eat: float
    carb_ratio: float
    current_glucose: float
    trend_adjustment: Optional[float] = None
    effective_glucose: float
    glucose_diff: float
    target: float
    correction_factor: float
    rounding_step: float


class CalculationResult(BaseModel):
    ok: Literal[True] = True

    carb_dose: float
    correction_dose: float
    raw_total: float
    rounded_total: float

    decimals: int = Field(ge=1, le=2)
    dose_units: float = Field(ge=0, description="Dose to show; 0 when in carb deficit")
    display_dose: str
    carb_deficit_g: Optional[int] = None

    safety_band: SafetyBand = SafetyBand.NONE
    operands: DoseOperands

    @property
    def in_deficit(self) -> bool:
        return self.carb_deficit_g is not None


DoseOutcome = Union[CalculationResult, DoseRejection]
