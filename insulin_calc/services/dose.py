from __future__ import annotations

import logging
import math
from typing import Optional

from insulin_calc.core.constants import (
    DEFAULT_ROUNDING_STEP,
    HIGH_ABOVE_MGDL,
    LOW_BELOW_MGDL,
    SEVERE_LOW_BELOW_MGDL,
)
from insulin_calc.models.calculation import (
    CalculationInput,
    CalculationResult,
    DoseOperands,
    DoseOutcome,
    DoseRejection,
    FieldError,
    RawNumber,
)
from insulin_calc.models.enums import FieldErrorReason, SafetyBand

logger = logging.getLogger(__name__)

# Absorbs float noise such as 2.9999999999 before flooring
_FLOOR_EPSILON = 1e-9

_REQUIRED_FIELDS = ("carbs_to_eat", "current_glucose", "carb_ratio", "correction_factor", "target")
_DENOMINATORS = ("carb_ratio", "correction_factor")


def _parse_number(value: RawNumber) -> tuple[Optional[float], Optional[FieldErrorReason]]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None, FieldErrorReason.MISSING
    if isinstance(value, bool):
        return None, FieldErrorReason.INVALID
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None, FieldErrorReason.INVALID
    if not math.isfinite(number):
        return None, FieldErrorReason.INVALID
    return number, None


def floor_to_step(value: float, step: float) -> float:
    """Round down (towards negative infinity) to a multiple of `step`."""
    return round(math.floor(value / step + _FLOOR_EPSILON) * step, 6)


def display_decimals(step: float) -> int:
    return 2 if step < 0.1 else 1


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify_glucose(glucose_mgdl: float) -> SafetyBand:
    if glucose_mgdl < SEVERE_LOW_BELOW_MGDL:
        return SafetyBand.SEVERE_LOW
    if glucose_mgdl < LOW_BELOW_MGDL:
        return SafetyBand.LOW
    if glucose_mgdl > HIGH_ABOVE_MGDL:
        return SafetyBand.HIGH
    return SafetyBand.NONE


def validate_input(
    data: CalculationInput, rounding_step: RawNumber
) -> tuple[dict[str, float], list[FieldError]]:
    values: dict[str, float] = {}
    errors: list[FieldError] = []

    for name in _REQUIRED_FIELDS:
        number, reason = _parse_number(getattr(data, name))
        if reason is None and number < 0:
            reason = FieldErrorReason.NEGATIVE
        if reason is None and name in _DENOMINATORS and number == 0:
            reason = FieldErrorReason.ZERO_DENOMINATOR
        if reason is not None:
            errors.append(FieldError(field=name, reason=reason))
        else:
            values[name] = number

    # Optional and signed: only a present, unparseable value is an error
    if data.trend_adjustment is not None:
        number, reason = _parse_number(data.trend_adjustment)
        if reason is FieldErrorReason.MISSING:
            pass
        elif reason is not None:
            errors.append(FieldError(field="trend_adjustment", reason=reason))
        else:
            values["trend_adjustment"] = number

    step, reason = _parse_number(rounding_step)
    if reason is None and step < 0:
        reason = FieldErrorReason.NEGATIVE
    if reason is None and step == 0:
        reason = FieldErrorReason.ZERO_DENOMINATOR
    if reason is not None:
        errors.append(FieldError(field="rounding_step", reason=reason))
    else:
        values["rounding_step"] = step

    return values, errors


def _out_of_range(*fields: str) -> DoseRejection:
    # Finite inputs whose arithmetic overflows to infinity
    errors = [FieldError(field=name, reason=FieldErrorReason.INVALID) for name in fields]
    logger.debug("Dose arithmetic overflowed: %s", list(fields))
    return DoseRejection(errors=errors)


def compute_dose(data: CalculationInput, rounding_step: RawNumber = DEFAULT_ROUNDING_STEP) -> DoseOutcome:
    """
    Recommended dose for a meal, all glucose values in mg/dL.

    Returns a DoseRejection listing every offending field instead of raising
    when any input is missing or unusable.
    """
    values, errors = validate_input(data, rounding_step)
    if errors:
        logger.debug("Dose input rejected: %s", [(e.field, e.reason.value) for e in errors])
        return DoseRejection(errors=errors)

    carbs = values["carbs_to_eat"]
    glucose = values["current_glucose"]
    cr = values["carb_ratio"]
    cf = values["correction_factor"]
    target = values["target"]
    trend = values.get("trend_adjustment")
    step = values["rounding_step"]

    carb_dose = carbs / cr
    if not math.isfinite(carb_dose):
        return _out_of_range("carbs_to_eat", "carb_ratio")

    effective_glucose = glucose + (trend if trend is not None else 0.0)
    glucose_diff = effective_glucose - target
    if not math.isfinite(glucose_diff):
        return _out_of_range("current_glucose", "target")
    # Negative below target: reduces the total, possibly past zero
    correction_dose = glucose_diff / cf
    if not math.isfinite(correction_dose):
        return _out_of_range("correction_factor")

    raw_total = carb_dose + correction_dose
    if not math.isfinite(raw_total):
        return _out_of_range("carbs_to_eat", "current_glucose")
    if not math.isfinite(raw_total / step):
        return _out_of_range("rounding_step")
    rounded_total = floor_to_step(raw_total, step)
    decimals = display_decimals(step)

    carb_deficit_g: Optional[int] = None
    dose_units = rounded_total
    if rounded_total < 0:
        deficit = abs(cr * raw_total)
        if not math.isfinite(deficit):
            return _out_of_range("carb_ratio")
        carb_deficit_g = round_half_up(deficit)
        dose_units = 0.0

    band = classify_glucose(glucose)

    return CalculationResult(
        carb_dose=carb_dose,
        correction_dose=correction_dose,
        raw_total=raw_total,
        rounded_total=rounded_total,
        decimals=decimals,
        dose_units=dose_units,
        display_dose=f"{dose_units:.{decimals}f}",
        carb_deficit_g=carb_deficit_g,
        safety_band=band,
        operands=DoseOperands(
            carbs_to_eat=carbs,
            carb_ratio=cr,
            current_glucose=glucose,
            trend_adjustment=trend,
            effective_glucose=effective_glucose,
            glucose_diff=glucose_diff,
            target=target,
            correction_factor=cf,
            rounding_step=step,
        ),
    )
