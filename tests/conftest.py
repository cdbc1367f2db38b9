"""Shared reading builders for the test suite."""

from datetime import datetime, timedelta
from typing import List, Sequence

import pytest

from cgm_insulin_analyzer.config import GlucoseThresholds
from cgm_insulin_analyzer.readings import GlucoseReading, InsulinReading, InsulinType
from cgm_insulin_analyzer.utils.units import mgdl_to_mmol


def glucose_series(
    start: datetime,
    values: Sequence[float],
    step_minutes: float = 5,
) -> List[GlucoseReading]:
    """Readings (mmol/L) every step_minutes from start."""
    return [
        GlucoseReading(timestamp=start + timedelta(minutes=i * step_minutes), value=float(v))
        for i, v in enumerate(values)
    ]


def mgdl_series(
    start: datetime,
    values_mgdl: Sequence[float],
    step_minutes: float = 5,
) -> List[GlucoseReading]:
    """Readings given in mg/dL, stored in mmol/L."""
    return glucose_series(start, [mgdl_to_mmol(v) for v in values_mgdl], step_minutes)


def bolus(timestamp: datetime, dose: float) -> InsulinReading:
    return InsulinReading(timestamp=timestamp, dose=dose, insulin_type=InsulinType.BOLUS)


def basal(timestamp: datetime, dose: float) -> InsulinReading:
    return InsulinReading(timestamp=timestamp, dose=dose, insulin_type=InsulinType.BASAL)


@pytest.fixture
def thresholds() -> GlucoseThresholds:
    return GlucoseThresholds(very_low=3.0, low=3.9, high=10.0, very_high=13.9)
