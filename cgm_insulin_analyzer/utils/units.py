"""
Glucose unit conversion between mmol/L and mg/dL.

mmol/L is the canonical internal unit. Conversions do not round; rounding
is applied only by the formatting helpers at display boundaries.
"""

import re
from enum import Enum
from typing import Optional, Sequence, Union

# 1 mmol/L = 18.018 mg/dL (commonly rounded to 18)
MMOL_TO_MGDL = 18.018


class GlucoseUnit(str, Enum):
    MMOL_L = 'mmol/L'
    MG_DL = 'mg/dL'


GLUCOSE_COLUMN_NAMES = ('glucose value', 'glucose', 'glukosewert', 'cgm-glukosewert')


def mmol_to_mgdl(value: float) -> float:
    """Convert glucose from mmol/L to mg/dL."""
    return value * MMOL_TO_MGDL


def mgdl_to_mmol(value: float) -> float:
    """Convert glucose from mg/dL to mmol/L."""
    return value / MMOL_TO_MGDL


def convert_glucose_value(value: float, target_unit: Union[GlucoseUnit, str]) -> float:
    """Convert a canonical (mmol/L) value to the target unit.

    Args:
        value: Glucose value in mmol/L.
        target_unit: GlucoseUnit or its string value.

    Returns:
        Value in the target unit (identity for mmol/L).
    """
    if GlucoseUnit(target_unit) is GlucoseUnit.MG_DL:
        return mmol_to_mgdl(value)
    return value


def format_glucose_value(value: float, unit: Union[GlucoseUnit, str]) -> str:
    """Format a value already expressed in `unit` with unit-appropriate precision."""
    if GlucoseUnit(unit) is GlucoseUnit.MG_DL:
        return str(int(round(value)))
    return f"{value:.1f}"


def display_glucose_value(mmol_value: float, unit: Union[GlucoseUnit, str]) -> str:
    """Convert a canonical value and format it in one step."""
    return format_glucose_value(convert_glucose_value(mmol_value, unit), unit)


def detect_glucose_unit(column_headers: Sequence[str]) -> Optional[GlucoseUnit]:
    """Detect the glucose unit from CSV column headers.

    Looks for the glucose value column (English or German) and reads the
    unit from its parentheses, e.g. "Glucose Value (mg/dL)".

    Returns:
        Detected unit, or None if no glucose column or no unit is found.
    """
    glucose_header = None
    for name in GLUCOSE_COLUMN_NAMES:
        for header in column_headers:
            if name in header.lower():
                glucose_header = header
                break
        if glucose_header is not None:
            break

    if glucose_header is None:
        return None

    match = re.search(r'\(([^)]+)\)', glucose_header)
    if not match:
        return None

    unit_text = match.group(1).lower().strip()
    if 'mg' in unit_text and 'dl' in unit_text:
        return GlucoseUnit.MG_DL
    if 'mmol' in unit_text:
        return GlucoseUnit.MMOL_L
    return None
