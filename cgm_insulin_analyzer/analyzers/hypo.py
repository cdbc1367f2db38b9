"""
Hypo Analyzer - hypoglycemia period detection, LBGI and daily hypo summaries.

Detection is a single forward scan over chronologically sorted readings
with two states:

- IN_RANGE: a reading below the low threshold opens a period.
- IN_HYPO: track the running nadir; the first reading at or above the low
  threshold closes the period, and its timestamp is the period end.

A period still open when the readings run out closes at the last reading's
timestamp, so a single trailing low reading yields a 0-minute period.
A period is severe when its nadir is below the very-low threshold.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence

from cgm_insulin_analyzer.config import GlucoseThresholds
from cgm_insulin_analyzer.analyzers.glucose import calculate_bgri
from cgm_insulin_analyzer.analyzers.ranges import filter_readings_by_date, get_day_of_week, get_unique_dates
from cgm_insulin_analyzer.metrics.hypo_metrics import (
    DailyHypoSummary,
    HypoEventReading,
    HypoEventWindow,
    HypoPeriod,
    HypoStats,
    OverallHypoStats,
)
from cgm_insulin_analyzer.readings import GlucoseReading, sort_readings
from cgm_insulin_analyzer.utils.statistics import round_half_up

HYPO_WINDOW = timedelta(hours=1)
NADIR_MATCH_SECONDS = 60
LBGI_MODERATE_RISK = 2.5
LBGI_HIGH_RISK = 5.0


class HypoScanState(Enum):
    IN_RANGE = 'in_range'
    IN_HYPO = 'in_hypo'


class _OpenPeriod:
    """Running state of the period currently being scanned."""

    def __init__(self, reading: GlucoseReading):
        self.start_time = reading.timestamp
        self.nadir = reading.value
        self.nadir_time = reading.timestamp

    def observe(self, reading: GlucoseReading) -> None:
        if reading.value < self.nadir:
            self.nadir = reading.value
            self.nadir_time = reading.timestamp

    def close(self, end_time: datetime, very_low: float) -> HypoPeriod:
        return HypoPeriod(
            start_time=self.start_time,
            end_time=end_time,
            nadir_time=self.nadir_time,
            nadir=self.nadir,
            duration_minutes=(end_time - self.start_time).total_seconds() / 60,
            is_severe=self.nadir < very_low,
        )


def detect_hypo_periods(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds
) -> List[HypoPeriod]:
    """Detect hypoglycemia periods.

    Args:
        readings: Glucose readings (mmol/L). Sorted defensively.
        thresholds: Glucose thresholds; `low` opens/closes periods and
            `very_low` marks severity.

    Returns:
        Periods in onset order.
    """
    periods: List[HypoPeriod] = []
    state = HypoScanState.IN_RANGE
    current: Optional[_OpenPeriod] = None
    last_timestamp = None

    for reading in sort_readings(readings):
        last_timestamp = reading.timestamp
        is_below = reading.value < thresholds.low

        if state is HypoScanState.IN_RANGE:
            if is_below:
                current = _OpenPeriod(reading)
                state = HypoScanState.IN_HYPO
        elif is_below:
            current.observe(reading)
        else:
            periods.append(current.close(reading.timestamp, thresholds.very_low))
            current = None
            state = HypoScanState.IN_RANGE

    if state is HypoScanState.IN_HYPO:
        periods.append(current.close(last_timestamp, thresholds.very_low))

    return periods


def calculate_hypo_stats(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds
) -> HypoStats:
    """Detect hypo periods and aggregate them.

    Returns:
        HypoStats; lowest_value is None when no period was found.
    """
    periods = detect_hypo_periods(readings, thresholds)
    severe_count = sum(1 for p in periods if p.is_severe)

    return HypoStats(
        severe_count=severe_count,
        non_severe_count=len(periods) - severe_count,
        total_count=len(periods),
        lowest_value=min((p.nadir for p in periods), default=None),
        longest_duration_minutes=max((p.duration_minutes for p in periods), default=0.0),
        total_duration_minutes=sum(p.duration_minutes for p in periods),
        hypo_periods=tuple(periods),
    )


def calculate_lbgi(readings: Sequence[GlucoseReading]) -> Optional[float]:
    """Low Blood Glucose Index over all readings.

    Readings are converted to mg/dL for the Kovatchev transformation;
    non-positive readings are skipped.

    Returns:
        Mean low-risk value, or None if there are no positive readings.
    """
    result = calculate_bgri(readings)
    return result.lbgi if result is not None else None


def extract_hypo_event_windows(
    readings: Sequence[GlucoseReading],
    periods: Sequence[HypoPeriod]
) -> List[HypoEventWindow]:
    """Readings around each hypo period, positioned relative to its nadir.

    Each window runs from an hour before the period starts to an hour after
    it ends, both inclusive. Event ids count from 1 in period order.
    """
    if not readings or not periods:
        return []

    ordered = sort_readings(readings)
    windows = []
    for event_id, period in enumerate(periods, start=1):
        window_start = period.start_time - HYPO_WINDOW
        window_end = period.end_time + HYPO_WINDOW
        window = []
        for reading in ordered:
            if not window_start <= reading.timestamp <= window_end:
                continue
            offset_seconds = (reading.timestamp - period.nadir_time).total_seconds()
            window.append(HypoEventReading(
                timestamp=reading.timestamp,
                value=reading.value,
                minutes_from_nadir=int(round_half_up(offset_seconds / 60)),
                is_nadir=abs(offset_seconds) < NADIR_MATCH_SECONDS,
            ))
        windows.append(HypoEventWindow(event_id=event_id, period=period, readings=tuple(window)))

    return windows


def calculate_daily_hypo_summaries(
    readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds
) -> List[DailyHypoSummary]:
    """Hypo statistics and LBGI for each date with readings, oldest first.

    Periods are detected within each day separately, so one that crosses
    midnight is counted on both dates.
    """
    summaries = []
    for date_string in get_unique_dates(readings):
        day_readings = filter_readings_by_date(readings, date_string)
        stats = calculate_hypo_stats(day_readings, thresholds)
        lbgi = calculate_lbgi(day_readings)

        summaries.append(DailyHypoSummary(
            date=date_string,
            day_of_week=get_day_of_week(datetime.strptime(date_string, '%Y-%m-%d')),
            severe_count=stats.severe_count,
            non_severe_count=stats.non_severe_count,
            total_count=stats.total_count,
            lowest_value=stats.lowest_value,
            longest_duration_minutes=stats.longest_duration_minutes,
            total_duration_minutes=stats.total_duration_minutes,
            lbgi=lbgi if lbgi is not None else 0.0,
        ))

    return summaries


def calculate_overall_hypo_stats(summaries: Sequence[DailyHypoSummary]) -> OverallHypoStats:
    """Aggregate daily summaries; every field is 0 without any days."""
    if not summaries:
        return OverallHypoStats()

    return OverallHypoStats(
        total_days=len(summaries),
        days_with_hypos=sum(1 for s in summaries if s.total_count > 0),
        total_hypo_events=sum(s.total_count for s in summaries),
        total_severe_events=sum(s.severe_count for s in summaries),
        average_lbgi=round_half_up(sum(s.lbgi for s in summaries) / len(summaries), 2),
        days_with_lbgi_above_2_5=sum(1 for s in summaries if s.lbgi > LBGI_MODERATE_RISK),
        days_with_lbgi_above_5_0=sum(1 for s in summaries if s.lbgi > LBGI_HIGH_RISK),
    )


def format_hypo_duration(minutes: float) -> str:
    """Format a duration, e.g. "< 1m", "45m", "2h", "1h 30m"."""
    if minutes < 1:
        return '< 1m'

    hours = int(minutes // 60)
    mins = int(round(minutes % 60))
    if mins == 60:
        hours, mins = hours + 1, 0

    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"
