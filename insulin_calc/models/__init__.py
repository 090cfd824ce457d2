from .calculation import CalculationInput, CalculationResult, DoseOperands, DoseOutcome, DoseRejection, FieldError
from .enums import FieldErrorReason, GlucoseUnit, SafetyBand, Theme
from .profile import Profile
from .settings import AppSettings
from .state import AppState, ProfileDraft
