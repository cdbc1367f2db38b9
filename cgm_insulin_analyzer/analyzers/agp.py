"""
AGP Analyzer - Ambulatory Glucose Profile percentiles by time of day.

Readings from all days are pooled into fixed time-of-day slots (5 minutes
by default, 288 per day) and summarized by percentile.
"""

from dataclasses import replace
from typing import List, Sequence

import numpy as np
import pandas as pd

from cgm_insulin_analyzer.analyzers.ranges import WEEKDAYS, get_day_of_week, is_workday
from cgm_insulin_analyzer.metrics.agp_metrics import AGPTimeSlotStats
from cgm_insulin_analyzer.readings import GlucoseReading, glucose_readings_to_frame
from cgm_insulin_analyzer.utils.smoothing import savgol_smooth

ALL_DAYS = 'All Days'
WORKDAY = 'Workday'
WEEKEND = 'Weekend'
DAY_FILTERS = (ALL_DAYS, *WEEKDAYS, WORKDAY, WEEKEND)

AGP_PERCENTILES = (10, 25, 50, 75, 90)
SMOOTHED_FIELDS = ('p10', 'p25', 'p50', 'p75', 'p90')


def format_time_slot(hours: int, minutes: int) -> str:
    return f"{hours:02d}:{minutes:02d}"


def get_time_slot_key(timestamp, slot_minutes: int = 5) -> str:
    """Slot label for a timestamp, rounded down to the slot start."""
    return format_time_slot(timestamp.hour, (timestamp.minute // slot_minutes) * slot_minutes)


def _slot_labels(slot_minutes: int) -> List[str]:
    return [
        format_time_slot(minute // 60, minute % 60)
        for minute in range(0, 24 * 60, slot_minutes)
    ]


def calculate_agp_stats(
    readings: Sequence[GlucoseReading],
    slot_minutes: int = 5
) -> List[AGPTimeSlotStats]:
    """Percentile profile across all days.

    Args:
        readings: Glucose readings (mmol/L).
        slot_minutes: Slot width; must divide 60.

    Returns:
        One entry per slot from 00:00, 24 * 60 / slot_minutes in total.
        Percentiles use linear interpolation; empty slots are all zeros.
    """
    if slot_minutes <= 0 or 60 % slot_minutes != 0:
        raise ValueError(f"Slot width must divide 60 minutes, got {slot_minutes}")

    labels = _slot_labels(slot_minutes)

    if readings:
        df = glucose_readings_to_frame(readings)
        minute_of_day = df['timestamp'].dt.hour * 60 + df['timestamp'].dt.minute
        df['slot'] = minute_of_day // slot_minutes

        grouped = df.groupby('slot')['glucose_mmol_l']
        quantiles = grouped.quantile([p / 100 for p in AGP_PERCENTILES]).unstack()
        quantiles.columns = [f"p{p}" for p in AGP_PERCENTILES]
        summary = pd.concat([grouped.min(), grouped.max(), grouped.count()], axis=1, keys=['lowest', 'highest', 'count'])
        summary = summary.join(quantiles)
    else:
        summary = pd.DataFrame()

    stats = []
    for slot, label in enumerate(labels):
        if slot not in summary.index:
            stats.append(AGPTimeSlotStats(
                time_slot=label, lowest=0.0, p10=0.0, p25=0.0, p50=0.0,
                p75=0.0, p90=0.0, highest=0.0, count=0,
            ))
            continue

        row = summary.loc[slot]
        stats.append(AGPTimeSlotStats(
            time_slot=label,
            lowest=float(row['lowest']),
            p10=float(row['p10']),
            p25=float(row['p25']),
            p50=float(row['p50']),
            p75=float(row['p75']),
            p90=float(row['p90']),
            highest=float(row['highest']),
            count=int(row['count']),
        ))

    return stats


def filter_readings_by_day_of_week(
    readings: Sequence[GlucoseReading],
    day_filter: str
) -> List[GlucoseReading]:
    """Keep readings on the given weekday, "Workday", "Weekend" or "All Days"."""
    if day_filter not in DAY_FILTERS:
        raise ValueError(f"Unknown day filter: {day_filter}")

    if day_filter == ALL_DAYS:
        return list(readings)
    if day_filter == WORKDAY:
        return [r for r in readings if is_workday(get_day_of_week(r.timestamp))]
    if day_filter == WEEKEND:
        return [r for r in readings if not is_workday(get_day_of_week(r.timestamp))]
    return [r for r in readings if get_day_of_week(r.timestamp) == day_filter]


def _parse_hhmm(value: str) -> int:
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


def filter_readings_by_time_range(
    readings: Sequence[GlucoseReading],
    start_time: str,
    end_time: str
) -> List[GlucoseReading]:
    """Keep readings whose time of day falls in [start_time, end_time] (HH:MM).

    A range whose start is after its end wraps past midnight, e.g.
    "22:00"-"06:00". Empty bounds disable the filter.
    """
    if not start_time or not end_time:
        return list(readings)

    start = _parse_hhmm(start_time)
    end = _parse_hhmm(end_time)

    def in_range(reading: GlucoseReading) -> bool:
        minute = reading.timestamp.hour * 60 + reading.timestamp.minute
        if start <= end:
            return start <= minute <= end
        return minute >= start or minute <= end

    return [r for r in readings if in_range(r)]


def smooth_agp_profile(
    stats: Sequence[AGPTimeSlotStats],
    window: int = 11,
    polyorder: int = 2
) -> List[AGPTimeSlotStats]:
    """Savitzky-Golay smoothing of the percentile curves for charting.

    Empty slots are interpolated from their neighbours before filtering and
    keep their zero values in the output. lowest/highest/count are unchanged.
    """
    stats = list(stats)
    has_data = np.array([s.count > 0 for s in stats], dtype=bool)
    if not has_data.any():
        return stats

    smoothed = {}
    for name in SMOOTHED_FIELDS:
        curve = pd.Series([getattr(s, name) for s in stats], dtype=float)
        curve[~has_data] = np.nan
        curve = curve.interpolate(limit_direction='both')
        smoothed[name] = savgol_smooth(curve.to_numpy(), window, polyorder)

    return [
        replace(s, **{name: float(smoothed[name][i]) for name in SMOOTHED_FIELDS}) if has_data[i] else s
        for i, s in enumerate(stats)
    ]
