import json
import zipfile
from datetime import date, datetime, timedelta

import pytest

from cgm_insulin_analyzer.analyzers.glucose import calculate_glucose_metrics
from cgm_insulin_analyzer.analyzers.hypo import (
    calculate_daily_hypo_summaries,
    calculate_hypo_stats,
    calculate_overall_hypo_stats,
)
from cgm_insulin_analyzer.analyzers.hypo_events import CSV_HEADERS, extract_detailed_hypo_events
from cgm_insulin_analyzer.analyzers.iob import calculate_daily_iob
from cgm_insulin_analyzer.analyzers.ranges import calculate_glucose_range_stats
from cgm_insulin_analyzer.cli import main, run_analysis
from cgm_insulin_analyzer.config import AnalysisConfig
from cgm_insulin_analyzer.reports import ReportGenerator
from cgm_insulin_analyzer.utils.units import GlucoseUnit

from conftest import bolus, glucose_series

DAY = date(2025, 1, 27)
START = datetime(2025, 1, 27, 6, 0)
VALUES = [6.0, 6.5, 7.0, 5.0, 3.5, 3.2, 3.6, 5.5, 8.0, 11.0, 12.0, 9.0]


@pytest.fixture
def glucose():
    return glucose_series(START, VALUES, step_minutes=15)


@pytest.fixture
def insulin():
    return [bolus(START + timedelta(minutes=20), 4.0)]


@pytest.fixture
def report_args(glucose, insulin, thresholds):
    daily_hypos = calculate_daily_hypo_summaries(glucose, thresholds)
    return dict(
        range_stats=calculate_glucose_range_stats(glucose, thresholds, 3),
        glucose_metrics=calculate_glucose_metrics(glucose, thresholds),
        hypo_stats=calculate_hypo_stats(glucose, thresholds),
        hypo_events=extract_detailed_hypo_events(glucose, thresholds, insulin),
        daily_iob=calculate_daily_iob(insulin, DAY),
        daily_hypos=daily_hypos,
        hypo_overview=calculate_overall_hypo_stats(daily_hypos),
    )


def test_text_report_sections(report_args):
    text = ReportGenerator().generate_text_report(**report_args)

    for heading in ('TIME IN RANGE', 'GLUCOSE SUMMARY', 'HYPOGLYCEMIA', 'INSULIN ON BOARD (2025-01-27)'):
        assert heading in text
    assert 'In Range (3.9-10.0): 58.3% (7)' in text
    assert 'Low (<3.9)' in text
    assert 'E-001 2025-01-27 07:00' in text
    assert '4.0U 40m prior' in text
    assert 'Days with hypos: 1 of 1' in text
    assert '2025-01-27 Mon: 1 (0 severe), lowest 3.2 mmol/L' in text
    assert text.rstrip().endswith('=' * 60)
    assert 'END OF REPORT' in text


def test_text_report_in_mgdl(report_args):
    text = ReportGenerator(unit=GlucoseUnit.MG_DL).generate_text_report(**report_args)

    assert 'In Range (70-180)' in text
    assert 'mg/dL' in text


def test_text_report_five_categories(glucose, thresholds):
    stats = calculate_glucose_range_stats(glucose, thresholds, 5)
    text = ReportGenerator().generate_text_report(range_stats=stats)

    assert 'Very Low (<3.0)' in text
    assert 'Low (3.0-3.9)' in text
    assert 'Very High (>13.9)' in text
    assert 'HYPOGLYCEMIA' not in text


def test_summary_dict(report_args):
    summary = ReportGenerator().generate_summary_dict(**report_args)

    assert summary['unit'] == 'mmol/L'
    assert summary['thresholds_mmol_l']['low'] == 3.9
    assert summary['time_in_range']['in_range'] == 7
    assert summary['hypos']['total_count'] == 1
    assert summary['hypo_events'][0]['event_id'] == 'E-001'
    assert summary['daily_hypos'][0]['day_of_week'] == 'Monday'
    assert summary['hypo_overview']['days_with_hypos'] == 1
    assert len(summary['daily_iob']) == 97
    assert summary['interpretation']['hba1c'].startswith('Estimate based on 1 days')
    json.dumps(summary)


@pytest.mark.parametrize(
    "values, expected",
    [
        ([6.0] * 8 + [12.0] * 2, 'Meeting consensus target (>70%)'),
        ([6.0] * 6 + [12.0] * 4, 'Below target, focus on reducing highs/lows'),
        ([6.0] * 4 + [12.0] * 6, 'Significantly below target'),
    ],
)
def test_tir_interpretation(thresholds, values, expected):
    stats = calculate_glucose_range_stats(glucose_series(START, values), thresholds)
    assert ReportGenerator().get_interpretation(stats)['tir'] == expected


def test_run_analysis_defaults_iob_to_last_day(glucose, insulin):
    run = run_analysis(glucose, insulin, AnalysisConfig())

    assert run.iob_date == DAY
    assert len(run.daily_iob) == 97
    assert run.hypo_stats.total_count == 1
    assert run.range_stats.total == len(VALUES)
    assert [d.date for d in run.daily_hypos] == ['2025-01-27']
    assert run.hypo_overview.total_hypo_events == 1


def test_run_analysis_with_smoothing(glucose, insulin):
    run = run_analysis(glucose, insulin, AnalysisConfig(), smooth=True)
    assert run.glucose_metrics.readings_count == len(VALUES)


@pytest.fixture
def export(tmp_path):
    rows = [
        f"{(START + timedelta(minutes=15 * i)).strftime('%Y-%m-%d %H:%M')}\t{str(value).replace('.', ',')}"
        for i, value in enumerate(VALUES)
    ]
    cgm = 'Name:Test\n' + 'Timestamp\tCGM Glucose Value (mmol/l)\n' + '\n'.join(rows) + '\n'
    bolus_csv = (
        'Name:Test\n'
        'Timestamp,Insulin Type,Insulin Delivered (U)\n'
        '2025-01-27 06:20,Normal,4.0\n'
    )
    path = tmp_path / 'export.zip'
    with zipfile.ZipFile(path, 'w') as archive:
        archive.writestr('cgm_data_1.csv', cgm)
        archive.writestr('bolus_data_1.csv', bolus_csv)
    return path


def test_cli_json_output(export, capsys):
    assert main(['--export', str(export), '--output', 'json', '--date', '2025-01-27']) == 0

    summary = json.loads(capsys.readouterr().out)
    assert summary['time_in_range']['total'] == len(VALUES)
    assert summary['hypo_events'][0]['last_bolus_units'] == 4.0
    assert summary['daily_iob'][0]['time'] == '2025-01-27T00:00:00'
    assert summary['hypo_overview']['total_days'] == 1


def test_cli_text_output_with_five_categories(export, capsys):
    assert main(['-e', str(export), '-m', '5', '-u', 'mg/dL']) == 0

    out = capsys.readouterr().out
    assert 'Very Low (<54)' in out
    assert 'END OF REPORT' in out


def test_cli_saves_report_and_events(export, tmp_path, capsys):
    report_path = tmp_path / 'report.txt'
    events_path = tmp_path / 'events.csv'

    assert main([
        '-e', str(export),
        '--save', str(report_path),
        '--events-csv', str(events_path),
    ]) == 0

    assert 'TIME IN RANGE' in report_path.read_text()
    assert events_path.read_text().startswith(','.join(CSV_HEADERS.values()))
    assert f"Output saved to {report_path}" in capsys.readouterr().out


def test_cli_missing_export_exits_with_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(['--export', str(tmp_path / 'absent.zip')])

    assert excinfo.value.code == 1
    assert 'Export not found' in capsys.readouterr().err


def test_cli_rejects_invalid_config(export, tmp_path):
    config_path = tmp_path / 'config.yaml'
    config_path.write_text('insulin:\n  duration_hours: 20\n')

    with pytest.raises(SystemExit) as excinfo:
        main(['--export', str(export), '--config', str(config_path)])
    assert excinfo.value.code == 2
