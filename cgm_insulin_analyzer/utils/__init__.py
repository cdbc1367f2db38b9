"""Utility functions for glucose and insulin analysis."""

from cgm_insulin_analyzer.utils.smoothing import rolling_smooth, savgol_smooth, smooth_glucose_readings
from cgm_insulin_analyzer.utils.statistics import (
    calculate_cv,
    calculate_percentage,
    calculate_quantiles,
    round_half_up,
)
from cgm_insulin_analyzer.utils.units import (
    GlucoseUnit,
    mmol_to_mgdl,
    mgdl_to_mmol,
    convert_glucose_value,
)

__all__ = [
    "rolling_smooth",
    "savgol_smooth",
    "smooth_glucose_readings",
    "calculate_cv",
    "calculate_percentage",
    "calculate_quantiles",
    "round_half_up",
    "GlucoseUnit",
    "mmol_to_mgdl",
    "mgdl_to_mmol",
    "convert_glucose_value",
]
