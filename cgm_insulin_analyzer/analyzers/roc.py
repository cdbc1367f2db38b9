"""
Rate of Change Analyzer - glucose velocity between consecutive readings.

Rates are in mmol/L per minute. Stability categories:
    good    |RoC| <= 0.06
    medium  |RoC| <= 0.11
    bad     above that
"""

from dataclasses import replace
from datetime import date
from typing import List, Sequence

import numpy as np
import pandas as pd

from cgm_insulin_analyzer.metrics.roc_metrics import RoCDataPoint, RoCStats
from cgm_insulin_analyzer.readings import GlucoseReading, sort_readings
from cgm_insulin_analyzer.utils.statistics import calculate_percentage

ROC_GOOD_THRESHOLD = 0.06
ROC_MEDIUM_THRESHOLD = 0.11

# Consecutive readings further apart (or closer) than this are not paired
MIN_GAP_MINUTES = 1
MAX_GAP_MINUTES = 30

SMOOTHING_WINDOW = '15min'


def categorize_roc(abs_roc: float) -> str:
    if abs_roc <= ROC_GOOD_THRESHOLD:
        return 'good'
    if abs_roc <= ROC_MEDIUM_THRESHOLD:
        return 'medium'
    return 'bad'


def calculate_roc(readings: Sequence[GlucoseReading]) -> List[RoCDataPoint]:
    """Rate of change for each pair of consecutive readings.

    Pairs less than 1 or more than 30 minutes apart are skipped. Each point
    is stamped with the later reading.
    """
    ordered = sort_readings(readings)
    points = []

    for previous, current in zip(ordered, ordered[1:]):
        gap = (current.timestamp - previous.timestamp).total_seconds() / 60
        if gap < MIN_GAP_MINUTES or gap > MAX_GAP_MINUTES:
            continue

        roc_raw = (current.value - previous.value) / gap
        points.append(RoCDataPoint(
            timestamp=current.timestamp,
            roc=abs(roc_raw),
            roc_raw=roc_raw,
            glucose_value=current.value,
            category=categorize_roc(abs(roc_raw)),
        ))

    return points


def filter_roc_by_date(points: Sequence[RoCDataPoint], day: date) -> List[RoCDataPoint]:
    return [p for p in points if p.timestamp.date() == day]


def calculate_roc_stats(points: Sequence[RoCDataPoint]) -> RoCStats:
    """Summary of RoC magnitudes; all zeros for empty input.

    sd_roc is the population standard deviation.
    """
    if not points:
        return RoCStats(
            min_roc=0.0, max_roc=0.0, sd_roc=0.0,
            good_percentage=0.0, medium_percentage=0.0, bad_percentage=0.0,
            good_count=0, medium_count=0, bad_count=0, total_count=0,
        )

    values = np.array([p.roc for p in points], dtype=float)
    total = len(points)
    good = sum(1 for p in points if p.category == 'good')
    medium = sum(1 for p in points if p.category == 'medium')
    bad = sum(1 for p in points if p.category == 'bad')

    return RoCStats(
        min_roc=float(values.min()),
        max_roc=float(values.max()),
        sd_roc=float(np.std(values)),
        good_percentage=calculate_percentage(good, total),
        medium_percentage=calculate_percentage(medium, total),
        bad_percentage=calculate_percentage(bad, total),
        good_count=good,
        medium_count=medium,
        bad_count=bad,
        total_count=total,
    )


def smooth_roc_data(points: Sequence[RoCDataPoint]) -> List[RoCDataPoint]:
    """Centered 15-minute moving average of the RoC series.

    The magnitude is the average of the signed rates, so opposite swings
    inside the window cancel out. Categories are recomputed.
    """
    if not points:
        return []

    ordered = sorted(points, key=lambda p: p.timestamp)
    raw = pd.Series(
        [p.roc_raw for p in ordered],
        index=pd.DatetimeIndex([p.timestamp for p in ordered]),
        dtype=float,
    )
    smoothed = raw.rolling(SMOOTHING_WINDOW, center=True, min_periods=1).mean().to_numpy()

    return [
        replace(p, roc=abs(float(value)), roc_raw=float(value), category=categorize_roc(abs(float(value))))
        for p, value in zip(ordered, smoothed)
    ]


def get_longest_category_period(points: Sequence[RoCDataPoint], category: str) -> float:
    """Longest run (minutes) of consecutive points in one category.

    A run's length is the time from its first to its last point, so a
    single point counts as 0.
    """
    longest = 0.0
    run_start = None

    for point in sorted(points, key=lambda p: p.timestamp):
        if point.category == category:
            if run_start is None:
                run_start = point.timestamp
            longest = max(longest, (point.timestamp - run_start).total_seconds() / 60)
        else:
            run_start = None

    return longest
