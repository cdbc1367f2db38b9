"""
Glucose Analyzer - summary and variability metrics.

All inputs are in mmol/L. Risk indices (BGRI) and the J-index use the
mg/dL scale of their published formulas and convert internally.
"""

from typing import Optional, Sequence

import numpy as np

from cgm_insulin_analyzer.config import GlucoseThresholds
from cgm_insulin_analyzer.analyzers.ranges import categorize_glucose
from cgm_insulin_analyzer.metrics.glucose_metrics import (
    GlucoseMetrics,
    BGRIResult,
    QuartileStats,
    HighLowIncidents,
    FluxResult,
)
from cgm_insulin_analyzer.readings import GlucoseReading, sort_readings
from cgm_insulin_analyzer.utils.statistics import calculate_cv, calculate_quantiles, sample_std
from cgm_insulin_analyzer.utils.units import MMOL_TO_MGDL

# Readings within tolerance of 5.0 mmol/L or 100 mg/dL count as "unicorns"
UNICORN_TOLERANCE_MMOL = 0.05
UNICORN_100_MGDL_IN_MMOL = 100 / MMOL_TO_MGDL
UNICORN_TOLERANCE_100_MGDL = 0.5 / MMOL_TO_MGDL

CV_TARGET_THRESHOLD = 36
MIN_DAYS_FOR_RELIABLE_HBA1C = 60

# (max CV%, grade, description), checked in order
FLUX_GRADES = (
    (20, 'A+', 'Extremely steady glucose values'),
    (26, 'A', 'Very steady glucose values'),
    (33, 'B', 'Reasonably steady glucose values'),
    (40, 'C', 'Moderate glucose variability'),
    (50, 'D', 'High glucose variability'),
)


def _values(readings: Sequence[GlucoseReading]) -> np.ndarray:
    return np.fromiter((r.value for r in readings), dtype=float, count=len(readings))


def calculate_average_glucose(readings: Sequence[GlucoseReading]) -> Optional[float]:
    if not readings:
        return None
    return float(np.mean(_values(readings)))


def calculate_median_glucose(readings: Sequence[GlucoseReading]) -> Optional[float]:
    if not readings:
        return None
    return float(np.median(_values(readings)))


def calculate_standard_deviation(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Sample standard deviation in mmol/L, None with fewer than two readings."""
    return sample_std(_values(readings))


def calculate_glucose_cv(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Coefficient of variation (%).

    Target: ≤36% indicates stable glycemic control.
    """
    return calculate_cv(_values(readings))


def calculate_estimated_hba1c(average_glucose_mmol: float) -> float:
    """Estimated HbA1c (%) from average glucose: (eAG + 2.59) / 1.59 (ADA)."""
    return (average_glucose_mmol + 2.59) / 1.59


def convert_hba1c_to_mmol_mol(hba1c_percent: float) -> float:
    """Convert HbA1c from NGSP % to IFCC mmol/mol."""
    return (hba1c_percent - 2.15) * 10.929


def calculate_bgri(readings: Sequence[GlucoseReading]) -> Optional[BGRIResult]:
    """Calculate Blood Glucose Risk Index (LBGI, HBGI and their sum).

    Evidence Tier: CONSENSUS (Kovatchev et al.)

    Non-positive readings cannot be log-transformed and are skipped.

    Returns:
        BGRIResult, or None if there are no positive readings.
    """
    values_mgdl = _values(readings) * MMOL_TO_MGDL
    values_mgdl = values_mgdl[values_mgdl > 0]

    if len(values_mgdl) == 0:
        return None

    # Transform glucose to symmetric scale
    # f(BG) = 1.509 * [(ln(BG))^1.084 - 5.381]
    f_bg = 1.509 * (np.power(np.log(values_mgdl), 1.084) - 5.381)

    # Risk function: r(BG) = 10 * f(BG)^2
    r_bg = 10 * np.power(f_bg, 2)

    # Split into low and high risk
    rl_bg = np.where(f_bg < 0, r_bg, 0)
    rh_bg = np.where(f_bg > 0, r_bg, 0)

    lbgi = float(np.mean(rl_bg))
    hbgi = float(np.mean(rh_bg))

    return BGRIResult(lbgi=lbgi, hbgi=hbgi, bgri=lbgi + hbgi)


def calculate_j_index(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """J-Index = 0.001 × (mean + SD)² on the mg/dL scale.

    Lower values indicate better control.
    """
    mean = calculate_average_glucose(readings)
    sd = calculate_standard_deviation(readings)
    if mean is None or sd is None or mean == 0:
        return None
    return 0.001 * ((mean + sd) * MMOL_TO_MGDL) ** 2


def calculate_quartiles(readings: Sequence[GlucoseReading]) -> Optional[QuartileStats]:
    if not readings:
        return None
    values = _values(readings)
    q = calculate_quantiles(values, (0.25, 0.50, 0.75))
    return QuartileStats(
        q25=q['q25'],
        q50=q['q50'],
        q75=q['q75'],
        min=float(values.min()),
        max=float(values.max()),
    )


def count_high_low_incidents(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds
) -> HighLowIncidents:
    """Count transitions into each out-of-range zone (5-category bands).

    A drop from very low to low, or from very high to high, is not a new
    incident.
    """
    counts = {'high': 0, 'low': 0, 'very_high': 0, 'very_low': 0}
    previous = None

    for reading in sort_readings(readings):
        current = categorize_glucose(reading.value, thresholds, 5)
        if previous is not None and current != previous:
            if current == 'high' and previous != 'very_high':
                counts['high'] += 1
            elif current == 'very_high':
                counts['very_high'] += 1
            elif current == 'low' and previous != 'very_low':
                counts['low'] += 1
            elif current == 'very_low':
                counts['very_low'] += 1
        previous = current

    return HighLowIncidents(
        high_count=counts['high'],
        low_count=counts['low'],
        very_high_count=counts['very_high'],
        very_low_count=counts['very_low'],
    )


def count_unicorns(readings: Sequence[GlucoseReading]) -> int:
    """Count readings at 5.0 mmol/L or 100 mg/dL (within tolerance)."""
    values = _values(readings)
    hits = (np.abs(values - 5.0) < UNICORN_TOLERANCE_MMOL) | (
        np.abs(values - UNICORN_100_MGDL_IN_MMOL) < UNICORN_TOLERANCE_100_MGDL
    )
    return int(np.sum(hits))


def calculate_flux(readings: Sequence[GlucoseReading]) -> Optional[FluxResult]:
    """Grade glucose steadiness from CV% (A+ steadiest, F most variable)."""
    cv = calculate_glucose_cv(readings)
    if cv is None:
        return None
    for max_cv, grade, description in FLUX_GRADES:
        if cv <= max_cv:
            return FluxResult(grade=grade, score=cv, description=description)
    return FluxResult(grade='F', score=cv, description='Very high glucose variability')


def _average_between_hours(readings: Sequence[GlucoseReading], start_hour: int, end_hour: int) -> Optional[float]:
    window = [r.value for r in readings if start_hour <= r.timestamp.hour < end_hour]
    if not window:
        return None
    return float(np.mean(window))


def calculate_wakeup_average(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Average glucose between 06:00 and 09:00."""
    return _average_between_hours(readings, 6, 9)


def calculate_bedtime_average(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Average glucose between 21:00 and midnight."""
    return _average_between_hours(readings, 21, 24)


def calculate_days_with_data(readings: Sequence[GlucoseReading]) -> int:
    return len({r.timestamp.date() for r in readings})


def calculate_glucose_metrics(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds
) -> GlucoseMetrics:
    """Perform comprehensive glucose analysis.

    Returns:
        GlucoseMetrics; metrics lacking data are None.
    """
    average = calculate_average_glucose(readings)
    hba1c = calculate_estimated_hba1c(average) if average is not None else None

    date_range = None
    if readings:
        timestamps = [r.timestamp for r in readings]
        date_range = (min(timestamps), max(timestamps))

    return GlucoseMetrics(
        average=average,
        median=calculate_median_glucose(readings),
        std=calculate_standard_deviation(readings),
        cv=calculate_glucose_cv(readings),
        estimated_hba1c=hba1c,
        estimated_hba1c_mmol_mol=convert_hba1c_to_mmol_mol(hba1c) if hba1c is not None else None,
        bgri=calculate_bgri(readings),
        j_index=calculate_j_index(readings),
        quartiles=calculate_quartiles(readings),
        flux=calculate_flux(readings),
        incidents=count_high_low_incidents(readings, thresholds),
        unicorns=count_unicorns(readings),
        wakeup_average=calculate_wakeup_average(readings),
        bedtime_average=calculate_bedtime_average(readings),
        readings_count=len(readings),
        days_with_data=calculate_days_with_data(readings),
        date_range=date_range,
    )
