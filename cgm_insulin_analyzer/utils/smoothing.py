"""
Smoothing utilities for glucose time series.

Provides a rolling average for noise suppression before charting and
statistics, and Savitzky-Golay smoothing for percentile curves.
"""

from dataclasses import replace
from typing import List, Sequence

import numpy as np
import pandas as pd

from cgm_insulin_analyzer.readings import GlucoseReading, sort_readings

# Centered window: previous, current and next reading.
GLUCOSE_SMOOTHING_WINDOW = 3


def rolling_smooth(
    series: pd.Series,
    window: int = 5,
    min_periods: int = 1,
    center: bool = True
) -> pd.Series:
    """Apply rolling average smoothing to a time series.

    Args:
        series: Input time series data.
        window: Window size for rolling average.
        min_periods: Minimum observations required in window.
        center: If True, center the window on each point.

    Returns:
        Smoothed series with same index.
    """
    return series.rolling(window=window, min_periods=min_periods, center=center).mean()


def smooth_glucose_readings(readings: Sequence[GlucoseReading]) -> List[GlucoseReading]:
    """Smooth glucose values with a centered 3-point moving average.

    Readings are put in chronological order first. Each interior value
    becomes the mean of itself and its two neighbours; the first and last
    values use the 2-point average with their single neighbour. Timestamps
    are unchanged.

    With fewer than three readings the input is returned unchanged
    (in chronological order).

    Args:
        readings: Glucose readings for one device-day (any order).

    Returns:
        Same-length list of readings with smoothed values.
    """
    ordered = sort_readings(readings)
    if len(ordered) < GLUCOSE_SMOOTHING_WINDOW:
        return ordered

    values = pd.Series([r.value for r in ordered], dtype=float)
    smoothed = rolling_smooth(values, window=GLUCOSE_SMOOTHING_WINDOW, min_periods=1, center=True)

    return [
        replace(reading, value=float(value))
        for reading, value in zip(ordered, smoothed.to_numpy())
    ]


def savgol_smooth(
    values: np.ndarray,
    window: int = 11,
    polyorder: int = 2
) -> np.ndarray:
    """Apply Savitzky-Golay filter for smoothing.

    The Savitzky-Golay filter fits a polynomial to each window of data,
    which preserves peaks and troughs better than a simple moving average.

    Args:
        values: Input values (no NaN).
        window: Window length for the filter (made odd if even).
        polyorder: Order of polynomial to fit.

    Returns:
        Smoothed array, or the input unchanged if it is too short to filter.
    """
    from scipy.signal import savgol_filter

    values = np.asarray(values, dtype=float)

    # Ensure window is odd
    if window % 2 == 0:
        window += 1

    # Handle series shorter than window
    if len(values) < window:
        window = len(values) if len(values) % 2 == 1 else len(values) - 1

    if window <= polyorder:
        return values  # Can't smooth, return as-is

    return savgol_filter(values, window, polyorder)
