from __future__ import annotations

from typing import Optional

from insulin_calc.core.constants import HIGH_BANNER_MGDL, LOW_BANNER_MGDL, SEVERE_LOW_BANNER_MGDL
from insulin_calc.models.calculation import CalculationResult, DoseRejection
from insulin_calc.models.enums import FieldErrorReason, SafetyBand
from insulin_calc.models.profile import Profile
from insulin_calc.services.units import MINUS_SIGN, UnitLike, format_glucose, unit_label
from insulin_calc.utils.timezone import format_time_12

DIVIDE = "÷"
EN_DASH = "–"
EM_DASH = "—"

FIELD_LABELS = {
    "carbs_to_eat": "Carbs To Eat",
    "current_glucose": "Glucose",
    "carb_ratio": "Carb Ratio (ICR)",
    "correction_factor": "Correction Factor (ISF)",
    "target": "Target Glucose",
    "trend_adjustment": "Trend",
    "rounding_step": "Rounding",
}

REASON_TEXT = {
    FieldErrorReason.MISSING: "is required",
    FieldErrorReason.INVALID: "must be a number",
    FieldErrorReason.NEGATIVE: "cannot be negative",
    FieldErrorReason.ZERO_DENOMINATOR: "must be greater than zero",
}


def _num(value: float) -> str:
    return f"{value:g}"


def carb_line(result: CalculationResult) -> str:
    ops = result.operands
    return f"Carbs ({_num(ops.carbs_to_eat)}) {DIVIDE} Ratio ({_num(ops.carb_ratio)}) = {result.carb_dose:.3f}"


def correction_line(result: CalculationResult, unit: UnitLike) -> str:
    ops = result.operands
    trend = ""
    if ops.trend_adjustment is not None:
        sign = MINUS_SIGN if ops.trend_adjustment < 0 else "+"
        trend = f" {sign} Trend ({format_glucose(abs(ops.trend_adjustment), unit)})"
    return (
        f"(Current ({format_glucose(ops.current_glucose, unit)}){trend}"
        f" {MINUS_SIGN} Target ({format_glucose(ops.target, unit)}))"
        f" {DIVIDE} Factor ({format_glucose(ops.correction_factor, unit)}) = {result.correction_dose:.3f}"
    )


def total_math_line(result: CalculationResult) -> str:
    return f"Carb ({result.carb_dose:.3f}) + Correction ({result.correction_dose:.3f}) = {result.raw_total:.3f}"


def total_line(result: CalculationResult) -> str:
    if result.in_deficit:
        return f"{result.display_dose}u {EM_DASH} {result.carb_deficit_g}g carb deficit"
    return f"{result.display_dose}u"


def safety_banner(result: CalculationResult, unit: UnitLike) -> Optional[str]:
    label = unit_label(unit)
    band = result.safety_band
    if band is SafetyBand.SEVERE_LOW:
        return (
            f"Below {format_glucose(SEVERE_LOW_BANNER_MGDL, unit)} {label} "
            f"{EM_DASH} take immediate action to raise blood sugar."
        )
    if band is SafetyBand.LOW:
        return (
            f"Below {format_glucose(LOW_BANNER_MGDL, unit)} {label} "
            f"{EM_DASH} take 15g fast-acting carbs, recheck in 15 min."
        )
    if band is SafetyBand.HIGH:
        return f"Above {format_glucose(HIGH_BANNER_MGDL, unit)} {label} {EM_DASH} consider checking ketone levels."
    return None


def explain(result: CalculationResult, unit: UnitLike) -> list[str]:
    lines = [
        carb_line(result),
        correction_line(result, unit),
        total_line(result),
        total_math_line(result),
    ]
    banner = safety_banner(result, unit)
    if banner:
        lines.append(banner)
    return lines


def rejection_lines(rejection: DoseRejection) -> list[str]:
    return [
        f"{FIELD_LABELS.get(e.field, e.field)} {REASON_TEXT[e.reason]}"
        for e in rejection.errors
    ]


def profile_time_label(profile: Profile) -> str:
    if not profile.has_window:
        return ""
    return f"{format_time_12(profile.start_time)} {EN_DASH} {format_time_12(profile.end_time)}"


def profile_summary(profile: Profile, unit: UnitLike) -> str:
    parts = []
    if profile.carb_ratio:
        parts.append(f"CR: {_num(profile.carb_ratio)}")
    if profile.correction_factor is not None:
        parts.append(f"CF: {format_glucose(profile.correction_factor, unit)}")
    if profile.target is not None:
        parts.append(f"T: {format_glucose(profile.target, unit)}")
    return " · ".join(parts)
