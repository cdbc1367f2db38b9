"""
Insulin-On-Board Analyzer - exponential decay of bolus and basal doses.

Each dose decays as dose × exp(-k·t) with half-life = duration / 2 and
k = ln(2) / half-life; its contribution is exactly 0 from t = duration on.
Basal records are discrete micro-doses and use the same curve per dose.
"""

import math
from datetime import date, datetime, time, timedelta
from typing import List, Sequence

from cgm_insulin_analyzer.metrics.iob_metrics import (
    IOBPoint,
    DailyInsulinSummary,
    HourlyInsulinPoint,
)
from cgm_insulin_analyzer.readings import (
    InsulinReading,
    InsulinType,
    insulin_readings_to_frame,
)

DEFAULT_INSULIN_DURATION_HOURS = 5.0
DEFAULT_IOB_INTERVAL_MINUTES = 15


def calculate_active_insulin(dose: float, hours_elapsed: float, duration_hours: float) -> float:
    """Remaining active insulin from one dose.

    Args:
        dose: Units delivered.
        hours_elapsed: Time since delivery in hours.
        duration_hours: Total insulin action duration.

    Returns:
        Active units; 0 before delivery or once the action duration has passed.
    """
    if duration_hours <= 0:
        raise ValueError(f"Insulin duration must be positive, got {duration_hours}")
    if hours_elapsed < 0 or hours_elapsed >= duration_hours:
        return 0.0

    half_life = duration_hours / 2
    decay_constant = math.log(2) / half_life
    return dose * math.exp(-decay_constant * hours_elapsed)


def _day_start(readings: Sequence[InsulinReading], day: date) -> datetime:
    """Midnight of `day` in the timezone of the readings (naive when they are)."""
    tzinfo = readings[0].timestamp.tzinfo if readings else None
    return datetime.combine(day, time.min, tzinfo)


def calculate_iob_at_time(
    readings: Sequence[InsulinReading],
    current_time: datetime,
    duration_hours: float = DEFAULT_INSULIN_DURATION_HOURS
) -> IOBPoint:
    """Insulin on board at one instant, split by basal and bolus.

    Only doses with timestamp <= current_time and delivered less than
    duration_hours ago contribute; doses after current_time are ignored.
    """
    if duration_hours <= 0:
        raise ValueError(f"Insulin duration must be positive, got {duration_hours}")

    basal_iob = 0.0
    bolus_iob = 0.0

    for reading in readings:
        if reading.timestamp > current_time:
            continue
        hours_elapsed = (current_time - reading.timestamp).total_seconds() / 3600
        if hours_elapsed >= duration_hours:
            continue

        active = calculate_active_insulin(reading.dose, hours_elapsed, duration_hours)
        if reading.insulin_type == InsulinType.BASAL:
            basal_iob += active
        else:
            bolus_iob += active

    return IOBPoint(
        time=current_time,
        basal_iob=basal_iob,
        bolus_iob=bolus_iob,
        total_iob=basal_iob + bolus_iob,
    )


def calculate_daily_iob(
    readings: Sequence[InsulinReading],
    day: date,
    duration_hours: float = DEFAULT_INSULIN_DURATION_HOURS,
    interval_minutes: int = DEFAULT_IOB_INTERVAL_MINUTES
) -> List[IOBPoint]:
    """Sample IOB across one calendar day.

    Points run from 00:00 of `day` to 00:00 of the next day inclusive,
    1440 // interval_minutes + 1 points in total. Doses from the previous
    day still inside the action window contribute.
    Midnight is taken in the timezone of the readings.

    Raises:
        ValueError: If interval_minutes or duration_hours is not positive.
    """
    if interval_minutes <= 0:
        raise ValueError(f"IOB interval must be positive, got {interval_minutes}")
    if duration_hours <= 0:
        raise ValueError(f"Insulin duration must be positive, got {duration_hours}")

    # Only doses that can still be active at some point of the day
    day_start = _day_start(readings, day)
    day_end = day_start + timedelta(days=1)
    window_start = day_start - timedelta(hours=duration_hours)
    relevant = [r for r in readings if window_start < r.timestamp <= day_end]

    points = []
    for step in range(24 * 60 // interval_minutes + 1):
        sample_time = day_start + timedelta(minutes=step * interval_minutes)
        points.append(calculate_iob_at_time(relevant, sample_time, duration_hours))

    return points


def aggregate_insulin_by_date(readings: Sequence[InsulinReading]) -> List[DailyInsulinSummary]:
    """Total basal and bolus insulin per calendar date, oldest first."""
    if not readings:
        return []

    df = insulin_readings_to_frame(readings)
    df['date'] = df['timestamp'].dt.strftime('%Y-%m-%d')

    totals = (
        df.pivot_table(index='date', columns='insulin_type', values='dose', aggfunc='sum', fill_value=0.0)
        .reindex(columns=[InsulinType.BASAL.value, InsulinType.BOLUS.value], fill_value=0.0)
        .sort_index()
    )

    return [
        DailyInsulinSummary(
            date=day,
            basal_total=float(row[InsulinType.BASAL.value]),
            bolus_total=float(row[InsulinType.BOLUS.value]),
            total_insulin=float(row[InsulinType.BASAL.value] + row[InsulinType.BOLUS.value]),
        )
        for day, row in totals.iterrows()
    ]


def prepare_hourly_insulin(
    readings: Sequence[InsulinReading],
    day: date,
    duration_hours: float = DEFAULT_INSULIN_DURATION_HOURS
) -> List[HourlyInsulinPoint]:
    """Per-hour insulin delivery for one day with IOB at the top of each hour.

    Returns:
        24 points (hours 0-23). basal_in_hour and bolus_in_hour are the
        units delivered in [HH:00, HH+1:00); active_iob is total IOB at HH:00.
    """
    day_start = _day_start(readings, day)
    points = []

    for hour in range(24):
        hour_start = day_start + timedelta(hours=hour)
        hour_end = hour_start + timedelta(hours=1)
        in_hour = [r for r in readings if hour_start <= r.timestamp < hour_end]

        points.append(HourlyInsulinPoint(
            hour=hour,
            basal_in_hour=sum(r.dose for r in in_hour if r.insulin_type == InsulinType.BASAL),
            bolus_in_hour=sum(r.dose for r in in_hour if r.insulin_type == InsulinType.BOLUS),
            active_iob=calculate_iob_at_time(readings, hour_start, duration_hours).total_iob,
        ))

    return points
