from datetime import datetime

import numpy as np
import pytest

from cgm_insulin_analyzer.utils.smoothing import savgol_smooth, smooth_glucose_readings

from conftest import glucose_series

START = datetime(2025, 1, 27, 8, 0)


def test_smoothing_uses_centered_three_point_average():
    readings = glucose_series(START, [5.0, 8.0, 5.0, 5.0])
    smoothed = smooth_glucose_readings(readings)

    assert [r.value for r in smoothed] == pytest.approx([6.5, 6.0, 6.0, 5.0])


def test_smoothing_keeps_timestamps_and_length():
    readings = glucose_series(START, [5.0, 6.0, 7.0, 8.0, 9.0])
    smoothed = smooth_glucose_readings(readings)

    assert len(smoothed) == len(readings)
    assert [r.timestamp for r in smoothed] == [r.timestamp for r in readings]


def test_smoothing_sorts_unordered_input():
    readings = glucose_series(START, [4.0, 6.0, 8.0])
    smoothed = smooth_glucose_readings(list(reversed(readings)))

    assert [r.timestamp for r in smoothed] == [r.timestamp for r in readings]
    assert smoothed[1].value == pytest.approx(6.0)


@pytest.mark.parametrize("values", [[], [5.0], [5.0, 9.0]])
def test_smoothing_returns_short_input_unchanged(values):
    readings = glucose_series(START, values)
    assert smooth_glucose_readings(readings) == readings


def test_smoothing_suppresses_single_spike():
    readings = glucose_series(START, [6.0, 6.0, 15.0, 6.0, 6.0])
    smoothed = smooth_glucose_readings(readings)

    assert max(r.value for r in smoothed) == pytest.approx(9.0)


def test_savgol_preserves_linear_trend():
    values = np.linspace(4.0, 10.0, 25)
    assert savgol_smooth(values, window=7, polyorder=2) == pytest.approx(values)


def test_savgol_returns_short_input_unchanged():
    values = np.array([5.0, 6.0])
    assert savgol_smooth(values, window=11, polyorder=2) == pytest.approx(values)
