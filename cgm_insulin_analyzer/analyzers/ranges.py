"""
Range Analyzer - glucose range categorization and time-in-range grouping.

Categories are driven by a band table per category mode, so every value
falls into exactly one band. Boundary values resolve toward the in-range
side: low is strict (<), high is inclusive (<=).
"""

import math
import operator
from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from cgm_insulin_analyzer.config import GlucoseThresholds
from cgm_insulin_analyzer.metrics.range_metrics import (
    GlucoseRangeStats,
    DailyReport,
    DayOfWeekReport,
    WeeklyReport,
    HourlyTIRStats,
    TimePeriodTIRStats,
)
from cgm_insulin_analyzer.readings import GlucoseReading, glucose_readings_to_frame


class RangeCategoryMode(IntEnum):
    THREE = 3
    FIVE = 5


VERY_LOW = 'very_low'
LOW = 'low'
IN_RANGE = 'in_range'
HIGH = 'high'
VERY_HIGH = 'very_high'

# (category, threshold attribute, comparison) checked in order; the first
# match wins and the last entry of each mode has no upper bound.
_Band = Tuple[str, Optional[str], Optional[Callable[[float, float], bool]]]

_BANDS: Dict[RangeCategoryMode, Tuple[_Band, ...]] = {
    RangeCategoryMode.THREE: (
        (LOW, 'low', operator.lt),
        (IN_RANGE, 'high', operator.le),
        (HIGH, None, None),
    ),
    RangeCategoryMode.FIVE: (
        (VERY_LOW, 'very_low', operator.lt),
        (LOW, 'low', operator.lt),
        (IN_RANGE, 'high', operator.le),
        (HIGH, 'very_high', operator.le),
        (VERY_HIGH, None, None),
    ),
}

WEEKDAYS = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']
WORKDAYS = WEEKDAYS[:5]
MONTH_ABBREVIATIONS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                       'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

TIR_PERIOD_DAYS = (90, 28, 14, 7, 3)
HOUR_GROUP_SIZES = (1, 2, 3, 4, 6)


def coerce_mode(mode: Union[int, RangeCategoryMode]) -> RangeCategoryMode:
    """Validate a category mode.

    Raises:
        ValueError: If mode is not 3 or 5.
    """
    try:
        return RangeCategoryMode(mode)
    except ValueError:
        raise ValueError(f"Category mode must be 3 or 5, got {mode!r}") from None


def category_names(mode: Union[int, RangeCategoryMode] = 3) -> List[str]:
    """Category names for a mode, lowest band first."""
    return [band[0] for band in _BANDS[coerce_mode(mode)]]


def categorize_glucose(
    value: float,
    thresholds: GlucoseThresholds,
    mode: Union[int, RangeCategoryMode] = 3
) -> str:
    """Categorize a glucose reading.

    Args:
        value: Glucose value in mmol/L.
        thresholds: Glucose thresholds in mmol/L.
        mode: 3 or 5 category mode.

    Returns:
        Category name.
    """
    bands = _BANDS[coerce_mode(mode)]
    for category, attribute, compare in bands[:-1]:
        if compare(value, getattr(thresholds, attribute)):
            return category
    return bands[-1][0]


def _categorize_values(
    values: np.ndarray,
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode
) -> np.ndarray:
    bands = _BANDS[mode]
    conditions = [compare(values, getattr(thresholds, attribute)) for _, attribute, compare in bands[:-1]]
    choices = [category for category, _, _ in bands[:-1]]
    return np.select(conditions, choices, default=bands[-1][0])


def _stats_from_values(
    values: np.ndarray,
    thresholds: GlucoseThresholds,
    mode: RangeCategoryMode
) -> GlucoseRangeStats:
    values = np.asarray(values, dtype=float)
    if len(values) == 0:
        counts = {name: 0 for name in category_names(mode)}
    else:
        categories = _categorize_values(values, thresholds, mode)
        counts = {name: int(np.sum(categories == name)) for name in category_names(mode)}

    return GlucoseRangeStats(
        low=counts[LOW],
        in_range=counts[IN_RANGE],
        high=counts[HIGH],
        total=len(values),
        very_low=counts.get(VERY_LOW),
        very_high=counts.get(VERY_HIGH),
    )


def calculate_glucose_range_stats(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: Union[int, RangeCategoryMode] = 3
) -> GlucoseRangeStats:
    """Count readings per category.

    Empty input yields all-zero stats with the fields of the given mode.

    Args:
        readings: Glucose readings (mmol/L).
        thresholds: Glucose thresholds in mmol/L.
        mode: 3 or 5 category mode.

    Returns:
        GlucoseRangeStats; sum of category counts equals total.
    """
    mode = coerce_mode(mode)
    values = np.fromiter((r.value for r in readings), dtype=float, count=len(readings))
    return _stats_from_values(values, thresholds, mode)


# =========================================================================
# CALENDAR HELPERS
# =========================================================================

def format_date(value: Union[date, datetime]) -> str:
    """Format as YYYY-MM-DD."""
    return value.strftime('%Y-%m-%d')


def get_day_of_week(value: Union[date, datetime]) -> str:
    return WEEKDAYS[value.weekday()]


def is_workday(day: str) -> bool:
    return day in WORKDAYS


def get_week_start(value: Union[date, datetime]) -> date:
    """Monday of the week containing value."""
    if isinstance(value, datetime):
        value = value.date()
    return value - timedelta(days=value.weekday())


def get_week_end(value: Union[date, datetime]) -> date:
    """Sunday of the week containing value."""
    return get_week_start(value) + timedelta(days=6)


def format_week_range(start_date: date, end_date: date) -> str:
    """Format a week range, e.g. "Oct 6-12" or "Jan 27-Feb 2"."""
    start_month = MONTH_ABBREVIATIONS[start_date.month - 1]
    if start_date.month == end_date.month:
        return f"{start_month} {start_date.day}-{end_date.day}"
    end_month = MONTH_ABBREVIATIONS[end_date.month - 1]
    return f"{start_month} {start_date.day}-{end_month} {end_date.day}"


def _frame_with_calendar(readings: Sequence[GlucoseReading]) -> pd.DataFrame:
    df = glucose_readings_to_frame(readings)
    df['date'] = [format_date(r.timestamp) for r in readings]
    df['day'] = [get_day_of_week(r.timestamp) for r in readings]
    df['week_start'] = [format_date(get_week_start(r.timestamp)) for r in readings]
    df['hour'] = [r.timestamp.hour for r in readings]
    return df


# =========================================================================
# GROUPING
# =========================================================================

def group_by_date(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: Union[int, RangeCategoryMode] = 3
) -> List[DailyReport]:
    """Range stats per calendar date, sorted chronologically."""
    mode = coerce_mode(mode)
    df = _frame_with_calendar(readings)
    return [
        DailyReport(date=day_key, stats=_stats_from_values(group['glucose_mmol_l'].to_numpy(), thresholds, mode))
        for day_key, group in df.groupby('date', sort=True)
    ]


def group_by_day_of_week(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: Union[int, RangeCategoryMode] = 3
) -> List[DayOfWeekReport]:
    """Range stats per weekday (Monday..Sunday) plus Workday and Weekend rows.

    All seven weekdays are always present; days without readings have
    zero counts.
    """
    mode = coerce_mode(mode)
    df = _frame_with_calendar(readings)
    values_by_day = {day: group['glucose_mmol_l'].to_numpy() for day, group in df.groupby('day')}
    empty = np.array([], dtype=float)

    reports = [
        DayOfWeekReport(day=day, stats=_stats_from_values(values_by_day.get(day, empty), thresholds, mode))
        for day in WEEKDAYS
    ]

    workday_mask = df['day'].isin(WORKDAYS)
    reports.append(DayOfWeekReport(
        day='Workday',
        stats=_stats_from_values(df.loc[workday_mask, 'glucose_mmol_l'].to_numpy(), thresholds, mode),
    ))
    reports.append(DayOfWeekReport(
        day='Weekend',
        stats=_stats_from_values(df.loc[~workday_mask, 'glucose_mmol_l'].to_numpy(), thresholds, mode),
    ))
    return reports


def group_by_week(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: Union[int, RangeCategoryMode] = 3
) -> List[WeeklyReport]:
    """Range stats per Monday-anchored week, sorted chronologically."""
    mode = coerce_mode(mode)
    df = _frame_with_calendar(readings)

    reports = []
    for week_key, group in df.groupby('week_start', sort=True):
        week_start = date.fromisoformat(week_key)
        week_end = get_week_end(week_start)
        reports.append(WeeklyReport(
            week_label=format_week_range(week_start, week_end),
            week_start=week_key,
            week_end=format_date(week_end),
            stats=_stats_from_values(group['glucose_mmol_l'].to_numpy(), thresholds, mode),
        ))
    return reports


def get_unique_dates(readings: Sequence[GlucoseReading]) -> List[str]:
    """Sorted YYYY-MM-DD dates that have at least one reading."""
    return sorted({format_date(r.timestamp) for r in readings})


def filter_readings_by_date(readings: Sequence[GlucoseReading], date_string: str) -> List[GlucoseReading]:
    return [r for r in readings if format_date(r.timestamp) == date_string]


def filter_readings_to_last_n_days(
    readings: Sequence[GlucoseReading],
    days: int,
    reference_date: Optional[datetime] = None
) -> List[GlucoseReading]:
    """Keep readings from `days` days before the reference date through its end.

    The reference date defaults to the latest reading.
    """
    if not readings:
        return []

    max_date = reference_date or max(r.timestamp for r in readings)
    start = datetime.combine((max_date - timedelta(days=days)).date(), datetime.min.time(), max_date.tzinfo)
    end = datetime.combine(max_date.date(), datetime.max.time(), max_date.tzinfo)
    return [r for r in readings if start <= r.timestamp <= end]


# =========================================================================
# TIME IN RANGE BY PERIOD AND HOUR
# =========================================================================

def calculate_tir_by_time_periods(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: Union[int, RangeCategoryMode] = 3,
    reference_date: Optional[datetime] = None
) -> List[TimePeriodTIRStats]:
    """Range stats for the standard trailing periods that fit in the data span."""
    mode = coerce_mode(mode)
    if not readings:
        return []

    min_date = min(r.timestamp for r in readings)
    max_date = reference_date or max(r.timestamp for r in readings)
    total_days = math.ceil((max_date - min_date).total_seconds() / 86400)

    return [
        TimePeriodTIRStats(
            period=f"{days} days",
            days=days,
            stats=calculate_glucose_range_stats(
                filter_readings_to_last_n_days(readings, days, max_date), thresholds, mode
            ),
        )
        for days in TIR_PERIOD_DAYS
        if days <= total_days
    ]


def calculate_hourly_tir(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    mode: Union[int, RangeCategoryMode] = 3,
    group_size: int = 1
) -> List[HourlyTIRStats]:
    """Range stats per hour of day, or per group of hours.

    Args:
        group_size: Hours per group; one of 1, 2, 3, 4, 6.

    Returns:
        24 / group_size entries starting at 00:00.
    """
    mode = coerce_mode(mode)
    if group_size not in HOUR_GROUP_SIZES:
        raise ValueError(f"group_size must be one of {HOUR_GROUP_SIZES}, got {group_size!r}")

    df = _frame_with_calendar(readings)
    df['group'] = df['hour'] // group_size
    values_by_group = {int(g): grp['glucose_mmol_l'].to_numpy() for g, grp in df.groupby('group')}
    empty = np.array([], dtype=float)

    result = []
    for index in range(24 // group_size):
        start_hour = index * group_size
        if group_size == 1:
            label = f"{start_hour:02d}:00"
        else:
            label = f"{start_hour:02d}:00-{start_hour + group_size - 1:02d}:59"
        result.append(HourlyTIRStats(
            hour=start_hour,
            hour_label=label,
            stats=_stats_from_values(values_by_group.get(index, empty), thresholds, mode),
        ))
    return result
