"""Insulin dose calculator: profile scheduling and dose arithmetic."""

from insulin_calc.services.dose import compute_dose
from insulin_calc.services.scheduler import resolve_active

__version__ = "1.0.0"

__all__ = ["compute_dose", "resolve_active", "__version__"]
