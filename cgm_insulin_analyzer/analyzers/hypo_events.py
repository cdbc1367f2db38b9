"""
Detailed Hypo Event Extractor - per-event feature records.

Joins each detected hypo period with the insulin history and the glucose
curve around it. Output glucose values are mg/dL, rates mg/dL/min. Fields
without supporting data are None; nothing is estimated.
"""

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from cgm_insulin_analyzer.config import GlucoseThresholds, HypoEventSettings
from cgm_insulin_analyzer.analyzers.hypo import detect_hypo_periods
from cgm_insulin_analyzer.metrics.hypo_event import DetailedHypoEvent
from cgm_insulin_analyzer.readings import (
    GlucoseReading,
    InsulinReading,
    InsulinType,
    sort_readings,
)
from cgm_insulin_analyzer.utils.statistics import round_half_up
from cgm_insulin_analyzer.utils.units import mmol_to_mgdl

BASAL_HOURS_PRIOR = (1, 3, 5)
DEFAULT_BOLUS_LOOKBACK_HOURS = 6.0

# CSV column headers, in DetailedHypoEvent field order
CSV_HEADERS = {
    'event_id': 'Event_ID',
    'start_time': 'Start_Time',
    'nadir_value_mgdl': 'Nadir_Value_mg_dL',
    'duration_mins': 'Duration_Mins',
    'max_roc_mgdl_min': 'Max_RoC_mg_dL_min',
    'time_to_nadir_mins': 'Time_To_Nadir_Mins',
    'initial_roc_mgdl_min': 'Initial_RoC_mg_dL_min',
    'last_bolus_units': 'Last_Bolus_Units',
    'last_bolus_mins_prior': 'Last_Bolus_Mins_Prior',
    'second_bolus_units': 'Second_Bolus_Units',
    'second_bolus_mins_prior': 'Second_Bolus_Mins_Prior',
    'programmed_basal_uhr': 'Programmed_Basal_U_hr',
    'basal_units_h5_prior': 'Basal_Units_H5_Prior',
    'basal_units_h3_prior': 'Basal_Units_H3_Prior',
    'basal_units_h1_prior': 'Basal_Units_H1_Prior',
    'time_of_day_code': 'Time_of_Day_Code',
    'g_t_minus_60': 'G_T_Minus_60',
    'g_t_minus_30': 'G_T_Minus_30',
    'g_t_minus_10': 'G_T_Minus_10',
    'g_nadir_plus_15': 'G_Nadir_Plus_15',
}

MISSING_VALUE = 'N/A'


def _minutes_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 60


def find_closest_reading(
    readings: Sequence[GlucoseReading],
    target_time: datetime,
    tolerance_minutes: float = 5
) -> Optional[GlucoseReading]:
    """Reading nearest to target_time within the tolerance (earliest wins ties)."""
    closest = None
    min_diff = None

    for reading in readings:
        diff = abs(_minutes_between(target_time, reading.timestamp))
        if diff <= tolerance_minutes and (min_diff is None or diff < min_diff):
            closest = reading
            min_diff = diff

    return closest


def calculate_max_rate_of_change(
    readings: Sequence[GlucoseReading],
    onset: datetime,
    settings: HypoEventSettings
) -> Optional[float]:
    """Steepest drop (mg/dL/min) over reading pairs ~5 minutes apart before onset.

    Considers readings in [onset - window, onset]. Returns None when no
    pair shows a drop.
    """
    window_start = onset - timedelta(minutes=settings.roc_window_minutes)
    window = [r for r in readings if window_start <= r.timestamp <= onset]

    max_drop_rate = 0.0
    for i, first in enumerate(window):
        for second in window[i + 1:]:
            gap = _minutes_between(first.timestamp, second.timestamp)
            if settings.roc_pair_min_minutes <= gap <= settings.roc_pair_max_minutes:
                rate = mmol_to_mgdl((first.value - second.value) / gap)
                max_drop_rate = max(max_drop_rate, rate)

    if max_drop_rate <= 0:
        return None
    return round_half_up(max_drop_rate, 2)


def calculate_initial_rate_of_change(
    readings: Sequence[GlucoseReading],
    onset: datetime,
    tolerance_minutes: float = 5
) -> Optional[float]:
    """Drop rate (mg/dL/min) between the readings nearest onset-15 and onset-5 min.

    Positive values mean falling glucose.
    """
    start = find_closest_reading(readings, onset - timedelta(minutes=15), tolerance_minutes)
    end = find_closest_reading(readings, onset - timedelta(minutes=5), tolerance_minutes)
    if start is None or end is None:
        return None

    gap = _minutes_between(start.timestamp, end.timestamp)
    if gap == 0:
        return None

    return round_half_up(mmol_to_mgdl((start.value - end.value) / gap), 2)


def find_boluses_before(
    boluses: Sequence[InsulinReading],
    onset: datetime,
    lookback_hours: float = 6
) -> List[Tuple[InsulinReading, int]]:
    """Boluses in [onset - lookback, onset), most recent first.

    Returns:
        (bolus, whole minutes before onset) pairs.
    """
    window_start = onset - timedelta(hours=lookback_hours)
    found = [
        (b, int(round_half_up(_minutes_between(b.timestamp, onset))))
        for b in boluses
        if window_start <= b.timestamp < onset
    ]
    return sorted(found, key=lambda pair: onset - pair[0].timestamp)


def calculate_basal_in_hour(
    basals: Sequence[InsulinReading],
    onset: datetime,
    hours_before: int
) -> Optional[float]:
    """Basal units delivered in [onset - h hours, onset - (h-1) hours).

    Returns None when nothing (or only zero doses) was delivered.
    """
    hour_start = onset - timedelta(hours=hours_before)
    hour_end = onset - timedelta(hours=hours_before - 1)
    total = sum(b.dose for b in basals if hour_start <= b.timestamp < hour_end)

    if total <= 0:
        return None
    return round_half_up(total, 2)


def glucose_at_offset(
    readings: Sequence[GlucoseReading],
    reference: datetime,
    offset_minutes: float,
    tolerance_minutes: float = 5
) -> Optional[int]:
    """Nearest glucose (integer mg/dL) to reference + offset, None if out of tolerance."""
    reading = find_closest_reading(readings, reference + timedelta(minutes=offset_minutes), tolerance_minutes)
    if reading is None:
        return None
    return int(round_half_up(mmol_to_mgdl(reading.value)))


def extract_detailed_hypo_events(
    glucose_readings: Sequence[GlucoseReading],
    thresholds: GlucoseThresholds,
    insulin_readings: Sequence[InsulinReading] = (),
    date_filter: Optional[Union[date, str]] = None,
    settings: Optional[HypoEventSettings] = None,
    bolus_lookback_hours: float = DEFAULT_BOLUS_LOOKBACK_HOURS
) -> List[DetailedHypoEvent]:
    """Build a feature record for each detected hypo period.

    Args:
        glucose_readings: Glucose readings (mmol/L), any order.
        thresholds: Thresholds used for hypo detection.
        insulin_readings: Basal and bolus records, any order.
        date_filter: Keep only events whose onset falls on this date
            (date or YYYY-MM-DD string).
        settings: Tolerance and rate-of-change window settings.
        bolus_lookback_hours: How far back to search for boluses.

    Returns:
        Events in onset order with ids E-001, E-002, ...
    """
    if settings is None:
        settings = HypoEventSettings()
    if isinstance(date_filter, str):
        date_filter = date.fromisoformat(date_filter)

    readings = sort_readings(glucose_readings)
    periods = detect_hypo_periods(readings, thresholds)
    if date_filter is not None:
        periods = [p for p in periods if p.start_time.date() == date_filter]

    boluses = [r for r in insulin_readings if r.insulin_type == InsulinType.BOLUS]
    basals = [r for r in insulin_readings if r.insulin_type == InsulinType.BASAL]
    tolerance = settings.reading_tolerance_minutes

    events = []
    for index, period in enumerate(periods, start=1):
        onset = period.start_time
        prior_boluses = find_boluses_before(boluses, onset, bolus_lookback_hours)[:2]
        last_bolus = prior_boluses[0] if len(prior_boluses) > 0 else None
        second_bolus = prior_boluses[1] if len(prior_boluses) > 1 else None

        basal = {h: calculate_basal_in_hour(basals, onset, h) for h in BASAL_HOURS_PRIOR}

        events.append(DetailedHypoEvent(
            event_id=f"E-{index:03d}",
            start_time=onset,
            nadir_value_mgdl=int(round_half_up(mmol_to_mgdl(period.nadir))),
            duration_mins=int(round_half_up(period.duration_minutes)),
            max_roc_mgdl_min=calculate_max_rate_of_change(readings, onset, settings),
            time_to_nadir_mins=int(round_half_up(_minutes_between(onset, period.nadir_time))),
            initial_roc_mgdl_min=calculate_initial_rate_of_change(readings, onset, tolerance),
            last_bolus_units=round_half_up(last_bolus[0].dose, 1) if last_bolus else None,
            last_bolus_mins_prior=last_bolus[1] if last_bolus else None,
            second_bolus_units=round_half_up(second_bolus[0].dose, 1) if second_bolus else None,
            second_bolus_mins_prior=second_bolus[1] if second_bolus else None,
            # Programmed rate is not in the export; first-hour delivery stands in
            programmed_basal_uhr=basal[1],
            basal_units_h5_prior=basal[5],
            basal_units_h3_prior=basal[3],
            basal_units_h1_prior=basal[1],
            time_of_day_code=onset.hour,
            g_t_minus_60=glucose_at_offset(readings, onset, -60, tolerance),
            g_t_minus_30=glucose_at_offset(readings, onset, -30, tolerance),
            g_t_minus_10=glucose_at_offset(readings, onset, -10, tolerance),
            g_nadir_plus_15=glucose_at_offset(readings, period.nadir_time, 15, tolerance),
        ))

    return events


def hypo_events_to_frame(events: Sequence[DetailedHypoEvent]) -> pd.DataFrame:
    """Tabulate events with CSV-style column headers.

    Columns are object-typed so integer fields stay integers next to None.
    """
    rows = [e.to_dict() for e in events]
    return pd.DataFrame(
        [[row[key] for key in CSV_HEADERS] for row in rows],
        columns=list(CSV_HEADERS.values()),
        dtype=object,
    )


def hypo_events_to_csv(
    events: Sequence[DetailedHypoEvent],
    path: Optional[Path] = None
) -> str:
    """Render events as CSV, writing "N/A" for missing values.

    Args:
        events: Events to export.
        path: Optional file to write as well.

    Returns:
        CSV text ('' when there are no events).
    """
    csv_text = ''
    if events:
        csv_text = hypo_events_to_frame(events).to_csv(index=False, na_rep=MISSING_VALUE, lineterminator='\n')
    if path is not None:
        Path(path).write_text(csv_text)
    return csv_text
