from enum import Enum


class GlucoseUnit(str, Enum):
    MGDL = "mgdl"
    MMOL = "mmol"


class Theme(str, Enum):
    SYSTEM = "system"
    LIGHT = "light"
    DARK = "dark"


class SafetyBand(str, Enum):
    NONE = "none"
    LOW = "low"
    SEVERE_LOW = "severe_low"
    HIGH = "high"


class FieldErrorReason(str, Enum):
    MISSING = "missing"
    INVALID = "invalid"
    NEGATIVE = "negative"
    ZERO_DENOMINATOR = "zero_denominator"
