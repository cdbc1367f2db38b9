"""
Reading value objects shared by every analyzer.

Glucose values are always stored in mmol/L. Conversion to mg/dL happens
at display/export boundaries (see utils.units).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Sequence, TypeVar

import pandas as pd


class InsulinType(str, Enum):
    """Kind of insulin delivery record."""
    BASAL = 'basal'
    BOLUS = 'bolus'


@dataclass(frozen=True)
class GlucoseReading:
    """A single CGM or BG reading (value in mmol/L)."""
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class InsulinReading:
    """A single insulin delivery record.

    Basal records are discrete periodic micro-doses (e.g. hourly pump
    delivery), not a continuous rate.
    """
    timestamp: datetime
    dose: float
    insulin_type: InsulinType


_R = TypeVar('_R', GlucoseReading, InsulinReading)


def sort_readings(readings: Iterable[_R]) -> List[_R]:
    """Return readings in chronological order (stable for equal timestamps)."""
    return sorted(readings, key=lambda r: r.timestamp)


def glucose_readings_to_frame(readings: Sequence[GlucoseReading]) -> pd.DataFrame:
    """Build a DataFrame with 'timestamp' and 'glucose_mmol_l' columns."""
    return pd.DataFrame(
        {
            'timestamp': pd.to_datetime([r.timestamp for r in readings]),
            'glucose_mmol_l': pd.Series([r.value for r in readings], dtype=float),
        }
    )


def insulin_readings_to_frame(readings: Sequence[InsulinReading]) -> pd.DataFrame:
    """Build a DataFrame with 'timestamp', 'dose' and 'insulin_type' columns."""
    return pd.DataFrame(
        {
            'timestamp': pd.to_datetime([r.timestamp for r in readings]),
            'dose': pd.Series([r.dose for r in readings], dtype=float),
            'insulin_type': [InsulinType(r.insulin_type).value for r in readings],
        }
    )
