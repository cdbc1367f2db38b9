from datetime import datetime

import pytest

from cgm_insulin_analyzer.analyzers.glucose import (
    calculate_bgri,
    calculate_estimated_hba1c,
    calculate_flux,
    calculate_glucose_metrics,
    calculate_j_index,
    convert_hba1c_to_mmol_mol,
    count_high_low_incidents,
    count_unicorns,
)
from cgm_insulin_analyzer.readings import GlucoseReading

from conftest import glucose_series

START = datetime(2025, 1, 27, 6, 0)


def test_summary_metrics(thresholds):
    readings = glucose_series(START, [4.0, 6.0])
    metrics = calculate_glucose_metrics(readings, thresholds)

    assert metrics.average == pytest.approx(5.0)
    assert metrics.median == pytest.approx(5.0)
    assert metrics.std == pytest.approx(1.41421356)
    assert metrics.cv == pytest.approx(28.2842712)
    assert metrics.estimated_hba1c == pytest.approx((5.0 + 2.59) / 1.59)
    assert metrics.readings_count == 2
    assert metrics.days_with_data == 1
    assert metrics.date_range == (readings[0].timestamp, readings[1].timestamp)
    assert metrics.wakeup_average == pytest.approx(5.0)
    assert metrics.bedtime_average is None


def test_summary_metrics_without_readings(thresholds):
    metrics = calculate_glucose_metrics([], thresholds)

    assert metrics.average is None
    assert metrics.cv is None
    assert metrics.bgri is None
    assert metrics.quartiles is None
    assert metrics.readings_count == 0
    assert metrics.to_dict()['start_date'] is None


def test_single_reading_has_no_variability(thresholds):
    metrics = calculate_glucose_metrics(glucose_series(START, [7.0]), thresholds)

    assert metrics.average == pytest.approx(7.0)
    assert metrics.std is None
    assert metrics.cv is None
    assert metrics.flux is None
    assert metrics.j_index is None


def test_hba1c_conversion():
    assert calculate_estimated_hba1c(7.0) == pytest.approx(6.0315, abs=1e-4)
    assert convert_hba1c_to_mmol_mol(7.0) == pytest.approx(53.0, abs=0.1)


def test_bgri_weights_low_readings_as_low_risk():
    low = calculate_bgri(glucose_series(START, [3.0, 3.2, 3.5]))
    high = calculate_bgri(glucose_series(START, [15.0, 18.0, 20.0]))

    assert low.lbgi > 0
    assert low.hbgi == 0
    assert high.hbgi > 0
    assert high.lbgi == 0
    assert low.bgri == pytest.approx(low.lbgi + low.hbgi)


def test_bgri_skips_non_positive_values():
    assert calculate_bgri([GlucoseReading(START, 0.0)]) is None
    assert calculate_bgri([]) is None


def test_j_index_uses_mgdl_scale():
    readings = glucose_series(START, [4.0, 6.0])
    expected = 0.001 * ((5.0 + 1.41421356) * 18.018) ** 2
    assert calculate_j_index(readings) == pytest.approx(expected)


def test_incidents_count_transitions_into_zones(thresholds):
    readings = glucose_series(START, [6.0, 11.0, 15.0, 11.0, 6.0, 3.5, 2.5, 3.5, 6.0])
    incidents = count_high_low_incidents(readings, thresholds)

    assert incidents.high_count == 1
    assert incidents.very_high_count == 1
    assert incidents.low_count == 1
    assert incidents.very_low_count == 1


def test_count_unicorns():
    readings = glucose_series(START, [5.0, 100 / 18.018, 5.2, 7.0])
    assert count_unicorns(readings) == 2


@pytest.mark.parametrize(
    "values, grade",
    [
        ([6.0, 6.1, 5.9, 6.0], 'A+'),
        ([4.0, 6.0], 'B'),
        ([2.0, 12.0], 'F'),
    ],
)
def test_flux_grade(values, grade):
    assert calculate_flux(glucose_series(START, values)).grade == grade
