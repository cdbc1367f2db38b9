import pytest
from hypothesis import given, strategies as st

from cgm_insulin_analyzer.utils.units import (
    MMOL_TO_MGDL,
    GlucoseUnit,
    convert_glucose_value,
    detect_glucose_unit,
    display_glucose_value,
    format_glucose_value,
    mgdl_to_mmol,
    mmol_to_mgdl,
)


def test_mmol_to_mgdl_does_not_round():
    assert mmol_to_mgdl(5.5) == pytest.approx(5.5 * 18.018)
    assert mmol_to_mgdl(1.0) == MMOL_TO_MGDL


def test_mgdl_to_mmol():
    assert mgdl_to_mmol(180.18) == pytest.approx(10.0)


@pytest.mark.parametrize("value", [0.0, -1.5])
def test_conversion_passes_non_positive_values_through(value):
    assert mmol_to_mgdl(value) == pytest.approx(value * MMOL_TO_MGDL)


@given(st.floats(min_value=0.1, max_value=40.0, allow_nan=False))
def test_unit_round_trip(value):
    assert mgdl_to_mmol(mmol_to_mgdl(value)) == pytest.approx(value, rel=1e-9)


def test_convert_glucose_value():
    assert convert_glucose_value(5.0, GlucoseUnit.MMOL_L) == 5.0
    assert convert_glucose_value(5.0, 'mg/dL') == pytest.approx(90.09)


def test_format_glucose_value():
    assert format_glucose_value(90.09, GlucoseUnit.MG_DL) == '90'
    assert format_glucose_value(5.04, GlucoseUnit.MMOL_L) == '5.0'


@pytest.mark.parametrize("unit", [GlucoseUnit.MG_DL, 'mg/dL'])
def test_unit_accepted_as_enum_or_string(unit):
    assert convert_glucose_value(10.0, unit) == pytest.approx(180.18)
    assert format_glucose_value(180.18, unit) == '180'
    assert display_glucose_value(10.0, unit) == '180'


def test_display_glucose_value():
    assert display_glucose_value(10.0, GlucoseUnit.MG_DL) == '180'
    assert display_glucose_value(10.0, GlucoseUnit.MMOL_L) == '10.0'


@pytest.mark.parametrize(
    "headers, expected",
    [
        (['Timestamp', 'CGM Glucose Value (mmol/l)', 'Serial Number'], GlucoseUnit.MMOL_L),
        (['Timestamp', 'Glucose Value (mg/dL)'], GlucoseUnit.MG_DL),
        (['Zeitstempel', 'CGM-Glukosewert (mg/dl)'], GlucoseUnit.MG_DL),
        (['Timestamp', 'Glucose Value'], None),
        (['Timestamp', 'Insulin Delivered (U)'], None),
    ],
)
def test_detect_glucose_unit(headers, expected):
    assert detect_glucose_unit(headers) is expected
