import pytest
import yaml

from cgm_insulin_analyzer.config import (
    AnalysisConfig,
    GlucoseThresholds,
    load_config,
    save_config,
    validate_insulin_duration,
    validate_thresholds,
)


def test_defaults():
    config = AnalysisConfig()

    assert config.glucose.very_low == 3.0
    assert config.glucose.low == 3.9
    assert config.glucose.high == 10.0
    assert config.glucose.very_high == 13.9
    assert config.ranges.category_mode == 3
    assert config.insulin.duration_hours == 5.0
    assert config.insulin.iob_interval_minutes == 15
    assert config.hypo_events.reading_tolerance_minutes == 5
    assert config.agp.slot_minutes == 5


def test_packaged_config_matches_defaults():
    assert load_config() == AnalysisConfig()


def test_save_and_load_round_trip(tmp_path):
    config = AnalysisConfig()
    config.glucose.high = 9.0
    config.ranges.category_mode = 5
    config.insulin.duration_hours = 4.0

    path = tmp_path / 'config.yaml'
    save_config(config, path)

    assert load_config(path) == config


def test_partial_file_overrides_only_given_keys(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.dump({
        'glucose': {'low': 4.0, 'unknown_key': 1},
        'insulin': {'duration_hours': 3.5},
    }))
    config = load_config(path)

    assert config.glucose.low == 4.0
    assert config.glucose.high == 10.0
    assert not hasattr(config.glucose, 'unknown_key')
    assert config.insulin.duration_hours == 3.5
    assert config.insulin.iob_interval_minutes == 15


def test_missing_or_empty_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / 'absent.yaml') == AnalysisConfig()

    empty = tmp_path / 'empty.yaml'
    empty.write_text('')
    assert load_config(empty) == AnalysisConfig()


def test_from_dict():
    config = AnalysisConfig.from_dict({'glucose': {'low': 4.2}, 'agp': {'slot_minutes': 15}})

    assert config.glucose.low == 4.2
    assert config.glucose.very_low == 3.0
    assert config.agp.slot_minutes == 15
    assert config.to_dict()['glucose']['low'] == 4.2


@pytest.mark.parametrize(
    "thresholds, message",
    [
        (GlucoseThresholds(), None),
        (GlucoseThresholds(very_low=0), 'Very low threshold must be greater than zero'),
        (GlucoseThresholds(low=2.5), 'Low threshold must be greater than very low threshold'),
        (GlucoseThresholds(high=3.9), 'High threshold must be greater than low threshold'),
        (GlucoseThresholds(very_high=9.0), 'Very high threshold must be greater than high threshold'),
    ],
)
def test_validate_thresholds(thresholds, message):
    assert validate_thresholds(thresholds) == message


@pytest.mark.parametrize("hours, valid", [(1.0, True), (5.0, True), (10.0, True), (0.5, False), (12, False)])
def test_validate_insulin_duration(hours, valid):
    assert (validate_insulin_duration(hours) is None) == valid
