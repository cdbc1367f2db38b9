"""Glucose and insulin analyzers."""

from cgm_insulin_analyzer.analyzers.ranges import (
    categorize_glucose,
    calculate_glucose_range_stats,
    group_by_date,
    group_by_day_of_week,
    group_by_week,
)
from cgm_insulin_analyzer.analyzers.glucose import calculate_glucose_metrics
from cgm_insulin_analyzer.analyzers.hypo import (
    detect_hypo_periods,
    calculate_hypo_stats,
    calculate_lbgi,
    calculate_daily_hypo_summaries,
    calculate_overall_hypo_stats,
    extract_hypo_event_windows,
)
from cgm_insulin_analyzer.analyzers.iob import calculate_iob_at_time, calculate_daily_iob
from cgm_insulin_analyzer.analyzers.hypo_events import extract_detailed_hypo_events
from cgm_insulin_analyzer.analyzers.agp import calculate_agp_stats
from cgm_insulin_analyzer.analyzers.roc import calculate_roc, calculate_roc_stats

__all__ = [
    "categorize_glucose",
    "calculate_glucose_range_stats",
    "group_by_date",
    "group_by_day_of_week",
    "group_by_week",
    "calculate_glucose_metrics",
    "detect_hypo_periods",
    "calculate_hypo_stats",
    "calculate_lbgi",
    "calculate_daily_hypo_summaries",
    "calculate_overall_hypo_stats",
    "extract_hypo_event_windows",
    "calculate_iob_at_time",
    "calculate_daily_iob",
    "extract_detailed_hypo_events",
    "calculate_agp_stats",
    "calculate_roc",
    "calculate_roc_stats",
]
