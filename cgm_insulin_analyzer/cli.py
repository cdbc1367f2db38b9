"""
Command-line interface for CGM/insulin analysis of a Glooko export.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from cgm_insulin_analyzer.config import (
    AnalysisConfig,
    load_config,
    validate_insulin_duration,
    validate_thresholds,
)
from cgm_insulin_analyzer.analyzers.glucose import calculate_glucose_metrics
from cgm_insulin_analyzer.analyzers.hypo import (
    calculate_daily_hypo_summaries,
    calculate_hypo_stats,
    calculate_overall_hypo_stats,
)
from cgm_insulin_analyzer.analyzers.hypo_events import extract_detailed_hypo_events, hypo_events_to_csv
from cgm_insulin_analyzer.analyzers.iob import calculate_daily_iob
from cgm_insulin_analyzer.analyzers.ranges import calculate_glucose_range_stats
from cgm_insulin_analyzer.loaders.glooko import GlookoExportLoader
from cgm_insulin_analyzer.metrics.glucose_metrics import GlucoseMetrics
from cgm_insulin_analyzer.metrics.hypo_event import DetailedHypoEvent
from cgm_insulin_analyzer.metrics.hypo_metrics import DailyHypoSummary, HypoStats, OverallHypoStats
from cgm_insulin_analyzer.metrics.iob_metrics import IOBPoint
from cgm_insulin_analyzer.metrics.range_metrics import GlucoseRangeStats
from cgm_insulin_analyzer.readings import GlucoseReading, InsulinReading
from cgm_insulin_analyzer.reports.generator import ReportGenerator
from cgm_insulin_analyzer.utils.smoothing import smooth_glucose_readings
from cgm_insulin_analyzer.utils.units import GlucoseUnit

logger = structlog.get_logger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Send log events to stderr so report output on stdout stays clean."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@dataclass
class AnalysisRun:
    """Results of one analysis run."""
    range_stats: GlucoseRangeStats
    glucose_metrics: GlucoseMetrics
    hypo_stats: HypoStats
    hypo_events: List[DetailedHypoEvent] = field(default_factory=list)
    daily_hypos: List[DailyHypoSummary] = field(default_factory=list)
    hypo_overview: OverallHypoStats = field(default_factory=OverallHypoStats)
    daily_iob: List[IOBPoint] = field(default_factory=list)
    iob_date: Optional[date] = None


def run_analysis(
    glucose: Sequence[GlucoseReading],
    insulin: Sequence[InsulinReading],
    config: AnalysisConfig,
    day: Optional[date] = None,
    smooth: bool = False
) -> AnalysisRun:
    """Run every analysis over loaded readings.

    Args:
        glucose: Glucose readings (mmol/L).
        insulin: Basal and bolus records.
        config: Thresholds and settings.
        day: Restrict hypo events and the IOB curve to this date. Defaults
            to the last date with glucose data for the IOB curve.
        smooth: Apply 3-point smoothing before analysis.
    """
    if smooth:
        glucose = smooth_glucose_readings(glucose)

    thresholds = config.glucose
    iob_date = day
    if iob_date is None and glucose:
        iob_date = max(r.timestamp for r in glucose).date()

    daily_hypos = calculate_daily_hypo_summaries(glucose, thresholds)

    run = AnalysisRun(
        range_stats=calculate_glucose_range_stats(glucose, thresholds, config.ranges.category_mode),
        glucose_metrics=calculate_glucose_metrics(glucose, thresholds),
        hypo_stats=calculate_hypo_stats(glucose, thresholds),
        hypo_events=extract_detailed_hypo_events(
            glucose,
            thresholds,
            insulin,
            date_filter=day,
            settings=config.hypo_events,
            bolus_lookback_hours=config.insulin.bolus_lookback_hours,
        ),
        daily_hypos=daily_hypos,
        hypo_overview=calculate_overall_hypo_stats(daily_hypos),
        iob_date=iob_date,
    )

    if insulin and iob_date is not None:
        run.daily_iob = calculate_daily_iob(
            insulin,
            iob_date,
            config.insulin.duration_hours,
            config.insulin.iob_interval_minutes,
        )

    logger.info(
        "analysis_completed",
        readings=len(glucose),
        insulin_records=len(insulin),
        hypo_periods=run.hypo_stats.total_count,
        hypo_events=len(run.hypo_events),
    )
    return run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Analyze CGM glucose and insulin pump data from a Glooko export'
    )
    parser.add_argument(
        '--export', '-e',
        type=str,
        required=True,
        help='Path to Glooko ZIP export'
    )
    parser.add_argument(
        '--date', '-d',
        type=date.fromisoformat,
        help='Date (YYYY-MM-DD) for hypo events and the IOB curve'
    )
    parser.add_argument(
        '--mode', '-m',
        type=int,
        choices=[3, 5],
        help='Number of glucose range categories (default: from config)'
    )
    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Path to YAML configuration'
    )
    parser.add_argument(
        '--unit', '-u',
        choices=[u.value for u in GlucoseUnit],
        default=GlucoseUnit.MMOL_L.value,
        help='Display unit for the text report (default: mmol/L)'
    )
    parser.add_argument(
        '--smooth',
        action='store_true',
        help='Smooth glucose with a 3-point moving average before analysis'
    )
    parser.add_argument(
        '--output', '-o',
        type=str,
        choices=['text', 'json'],
        default='text',
        help='Output format (default: text)'
    )
    parser.add_argument(
        '--save', '-s',
        type=str,
        help='Save output to file'
    )
    parser.add_argument(
        '--events-csv',
        type=str,
        help='Write detailed hypo events to this CSV file'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Log progress to stderr'
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line interface for CGM/insulin analysis."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    config = load_config(Path(args.config)) if args.config else load_config()
    if args.mode is not None:
        config.ranges.category_mode = args.mode

    for error in (validate_thresholds(config.glucose), validate_insulin_duration(config.insulin.duration_hours)):
        if error:
            parser.error(error)

    loader = GlookoExportLoader(args.export)
    try:
        glucose = loader.load_glucose()
        insulin = loader.load_insulin()
    except (FileNotFoundError, ValueError) as exc:
        logger.error("export_load_failed", path=args.export, error=str(exc))
        parser.exit(1, f"error: {exc}\n")

    run = run_analysis(glucose, insulin, config, day=args.date, smooth=args.smooth)
    generator = ReportGenerator(config, unit=args.unit)
    report_args = dict(
        range_stats=run.range_stats,
        glucose_metrics=run.glucose_metrics,
        hypo_stats=run.hypo_stats,
        hypo_events=run.hypo_events,
        daily_hypos=run.daily_hypos,
        hypo_overview=run.hypo_overview,
        daily_iob=run.daily_iob,
    )

    if args.output == 'json':
        output_str = json.dumps(generator.generate_summary_dict(**report_args), indent=2)
    else:
        output_str = generator.generate_text_report(**report_args)

    if args.events_csv:
        hypo_events_to_csv(run.hypo_events, Path(args.events_csv))
        logger.info("hypo_events_exported", path=args.events_csv, count=len(run.hypo_events))

    if args.save:
        with open(args.save, 'w') as f:
            f.write(output_str)
        print(f"Output saved to {args.save}")
    else:
        print(output_str)

    return 0


if __name__ == '__main__':
    raise SystemExit(main())
