from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from insulin_calc.core.constants import MGDL_PER_MMOL, TREND_PRESETS
from insulin_calc.models.enums import GlucoseUnit
from insulin_calc.services.dose import round_half_up

UnitLike = Union[GlucoseUnit, str]

MINUS_SIGN = "−"


def _unit(unit: UnitLike) -> GlucoseUnit:
    return unit if isinstance(unit, GlucoseUnit) else GlucoseUnit(unit)


def to_display(mgdl: Optional[float], unit: UnitLike) -> Optional[float]:
    """
    mg/dL -> display unit. mmol/L keeps one decimal, mg/dL is whole.
    """
    if mgdl is None:
        return None
    if _unit(unit) is GlucoseUnit.MMOL:
        return round(mgdl / MGDL_PER_MMOL, 1)
    return round_half_up(mgdl)


def to_internal(value: Optional[float], unit: UnitLike) -> Optional[float]:
    """Display unit -> mg/dL."""
    if value is None:
        return None
    if _unit(unit) is GlucoseUnit.MMOL:
        return value * MGDL_PER_MMOL
    return float(value)


def unit_label(unit: UnitLike) -> str:
    return "mmol/L" if _unit(unit) is GlucoseUnit.MMOL else "mg/dL"


def format_glucose(mgdl: float, unit: UnitLike) -> str:
    # 3.0 mmol/L reads as "3", like the form shows it
    return f"{to_display(mgdl, unit):g}"


def format_signed_adjustment(mgdl: float, unit: UnitLike) -> str:
    """Trend text such as "+50", "−2.8" or "0"."""
    if mgdl == 0:
        return "0"
    sign = MINUS_SIGN if mgdl < 0 else "+"
    return sign + format_glucose(abs(mgdl), unit)


@dataclass(frozen=True)
class TrendOption:
    adjustment_mgdl: int
    label: str
    display: str


def trend_options(unit: UnitLike) -> list[TrendOption]:
    return [
        TrendOption(adjustment_mgdl=mg, label=label, display=format_signed_adjustment(mg, unit))
        for mg, label in TREND_PRESETS
    ]
