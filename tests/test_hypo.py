from datetime import datetime, timedelta

import pytest
from hypothesis import given, strategies as st

from cgm_insulin_analyzer.analyzers.hypo import (
    calculate_daily_hypo_summaries,
    calculate_hypo_stats,
    calculate_lbgi,
    calculate_overall_hypo_stats,
    detect_hypo_periods,
    extract_hypo_event_windows,
    format_hypo_duration,
)
from cgm_insulin_analyzer.config import GlucoseThresholds
from cgm_insulin_analyzer.metrics.hypo_metrics import DailyHypoSummary, OverallHypoStats
from cgm_insulin_analyzer.readings import GlucoseReading

from conftest import glucose_series, mgdl_series

START = datetime(2025, 1, 27, 3, 0)


def test_severe_period_ends_at_recovery_reading(thresholds):
    readings = mgdl_series(START, [120, 52, 52, 52, 52, 52, 52, 110])
    periods = detect_hypo_periods(readings, thresholds)

    assert len(periods) == 1
    period = periods[0]
    assert period.start_time == START + timedelta(minutes=5)
    assert period.end_time == START + timedelta(minutes=35)
    assert period.duration_minutes == 30
    assert period.is_severe


def test_period_records_nadir(thresholds):
    readings = glucose_series(START, [5.0, 3.8, 3.2, 3.5, 3.1, 4.5])
    period = detect_hypo_periods(readings, thresholds)[0]

    assert period.nadir == 3.1
    assert period.nadir_time == START + timedelta(minutes=20)
    assert not period.is_severe
    assert period.nadir_time_decimal == pytest.approx(3 + 20 / 60)


def test_reading_at_low_threshold_is_not_hypo(thresholds):
    readings = glucose_series(START, [5.0, 3.9, 3.9, 5.0])
    assert detect_hypo_periods(readings, thresholds) == []


def test_trailing_single_low_reading_has_zero_duration(thresholds):
    readings = glucose_series(START, [6.0, 6.0, 3.5])
    periods = detect_hypo_periods(readings, thresholds)

    assert len(periods) == 1
    assert periods[0].duration_minutes == 0
    assert periods[0].end_time == periods[0].start_time


def test_unrecovered_period_closes_at_last_reading(thresholds):
    readings = glucose_series(START, [3.5, 3.4, 3.3])
    period = detect_hypo_periods(readings, thresholds)[0]

    assert period.end_time == START + timedelta(minutes=10)
    assert period.duration_minutes == 10


def test_unsorted_readings_are_scanned_chronologically(thresholds):
    readings = glucose_series(START, [6.0, 3.5, 3.4, 6.0, 3.0, 6.0])
    periods = detect_hypo_periods(list(reversed(readings)), thresholds)

    assert [p.start_time for p in periods] == [
        START + timedelta(minutes=5),
        START + timedelta(minutes=20),
    ]


@given(st.lists(st.floats(min_value=1.5, max_value=20.0, allow_nan=False), max_size=50))
def test_periods_never_overlap(values):
    thresholds = GlucoseThresholds()
    periods = detect_hypo_periods(glucose_series(START, values), thresholds)

    for period in periods:
        assert period.start_time <= period.nadir_time <= period.end_time
        assert period.nadir < thresholds.low
        assert period.is_severe == (period.nadir < thresholds.very_low)
    for earlier, later in zip(periods, periods[1:]):
        assert earlier.end_time <= later.start_time


def test_hypo_stats(thresholds):
    readings = glucose_series(START, [6.0, 3.5, 6.0, 2.8, 2.6, 2.9, 6.0])
    stats = calculate_hypo_stats(readings, thresholds)

    assert stats.total_count == 2
    assert stats.severe_count == 1
    assert stats.non_severe_count == 1
    assert stats.lowest_value == 2.6
    assert stats.longest_duration_minutes == 15
    assert stats.total_duration_minutes == 20
    assert len(stats.to_dict()['hypo_periods']) == 2


def test_hypo_stats_without_periods(thresholds):
    stats = calculate_hypo_stats(glucose_series(START, [6.0, 7.0]), thresholds)

    assert stats.total_count == 0
    assert stats.lowest_value is None
    assert stats.longest_duration_minutes == 0
    assert stats.to_dict()['lowest_value_mmol_l'] is None


def test_lbgi():
    assert calculate_lbgi(glucose_series(START, [3.0, 3.5])) > 0
    assert calculate_lbgi([GlucoseReading(START, 0.0), GlucoseReading(START, -1.0)]) is None
    assert calculate_lbgi([]) is None


def test_event_window_spans_an_hour_either_side(thresholds):
    values = [6.0] * 5 + [3.5, 3.2, 3.4] + [6.0] * 7
    readings = glucose_series(datetime(2025, 1, 27, 1, 0), values, step_minutes=15)
    windows = extract_hypo_event_windows(readings, detect_hypo_periods(readings, thresholds))

    assert len(windows) == 1
    window = windows[0]
    assert window.event_id == 1
    assert window.readings[0].timestamp == datetime(2025, 1, 27, 1, 15)
    assert window.readings[-1].timestamp == datetime(2025, 1, 27, 4, 0)
    assert len(window.readings) == 12
    assert window.readings[0].minutes_from_nadir == -75
    assert window.readings[-1].minutes_from_nadir == 90
    assert [r.value for r in window.readings if r.is_nadir] == [3.2]
    assert window.to_dict()['period']['nadir_mmol_l'] == 3.2


def test_event_windows_are_numbered_in_period_order(thresholds):
    readings = glucose_series(START, [6.0, 3.5, 6.0, 6.0, 3.0, 6.0])
    windows = extract_hypo_event_windows(readings, detect_hypo_periods(readings, thresholds))

    assert [w.event_id for w in windows] == [1, 2]
    # Overlapping windows share readings
    assert len(windows[0].readings) == len(readings)


def test_event_windows_without_input(thresholds):
    readings = glucose_series(START, [6.0, 3.5, 6.0])

    assert extract_hypo_event_windows([], detect_hypo_periods(readings, thresholds)) == []
    assert extract_hypo_event_windows(readings, []) == []


def test_daily_hypo_summaries(thresholds):
    first_day = glucose_series(START, [6.0, 3.5, 6.0, 2.8, 2.6, 2.9, 6.0])
    second_day = glucose_series(START + timedelta(days=1), [6.0, 7.0])
    summaries = calculate_daily_hypo_summaries(second_day + first_day, thresholds)

    assert [s.date for s in summaries] == ['2025-01-27', '2025-01-28']
    assert [s.day_of_week for s in summaries] == ['Monday', 'Tuesday']

    monday = summaries[0]
    assert (monday.total_count, monday.severe_count, monday.non_severe_count) == (2, 1, 1)
    assert monday.lowest_value == 2.6
    assert monday.longest_duration_minutes == 15
    assert monday.total_duration_minutes == 20
    assert monday.lbgi == pytest.approx(calculate_lbgi(first_day))

    tuesday = summaries[1]
    assert tuesday.total_count == 0
    assert tuesday.lowest_value is None
    assert tuesday.to_dict()['lowest_value_mmol_l'] is None
    assert 0 < tuesday.lbgi < 2.5


def test_daily_lbgi_is_zero_without_positive_readings(thresholds):
    summaries = calculate_daily_hypo_summaries([GlucoseReading(START, 0.0)], thresholds)

    assert summaries[0].lbgi == 0.0
    assert summaries[0].total_count == 1


def _day(date_string, total, severe, lbgi):
    return DailyHypoSummary(
        date=date_string,
        day_of_week='Monday',
        severe_count=severe,
        non_severe_count=total - severe,
        total_count=total,
        lowest_value=3.0 if total else None,
        longest_duration_minutes=0.0,
        total_duration_minutes=0.0,
        lbgi=lbgi,
    )


def test_overall_hypo_stats():
    stats = calculate_overall_hypo_stats([
        _day('2025-01-27', 2, 1, 1.0),
        _day('2025-01-28', 0, 0, 3.0),
        _day('2025-01-29', 3, 2, 6.0),
    ])

    assert stats.total_days == 3
    assert stats.days_with_hypos == 2
    assert stats.total_hypo_events == 5
    assert stats.total_severe_events == 3
    assert stats.average_lbgi == 3.33
    assert stats.days_with_lbgi_above_2_5 == 2
    assert stats.days_with_lbgi_above_5_0 == 1


def test_overall_hypo_stats_thresholds_are_strict():
    stats = calculate_overall_hypo_stats([_day('2025-01-27', 0, 0, 2.5), _day('2025-01-28', 0, 0, 5.0)])

    assert stats.days_with_lbgi_above_2_5 == 1
    assert stats.days_with_lbgi_above_5_0 == 0


def test_hypo_summaries_of_no_readings_are_zero(thresholds):
    summaries = calculate_daily_hypo_summaries([], thresholds)
    stats = calculate_overall_hypo_stats(summaries)

    assert summaries == []
    assert stats == OverallHypoStats()
    assert stats.to_dict() == {
        'total_days': 0,
        'days_with_hypos': 0,
        'total_hypo_events': 0,
        'total_severe_events': 0,
        'average_lbgi': 0.0,
        'days_with_lbgi_above_2_5': 0,
        'days_with_lbgi_above_5_0': 0,
    }



@pytest.mark.parametrize(
    "minutes, expected",
    [
        (0, '< 1m'),
        (0.5, '< 1m'),
        (45, '45m'),
        (120, '2h'),
        (90, '1h 30m'),
        (119.8, '2h'),
    ],
)
def test_format_hypo_duration(minutes, expected):
    assert format_hypo_duration(minutes) == expected
