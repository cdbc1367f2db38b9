"""Metric dataclasses for analysis results."""

from cgm_insulin_analyzer.metrics.range_metrics import (
    GlucoseRangeStats,
    DailyReport,
    DayOfWeekReport,
    WeeklyReport,
    HourlyTIRStats,
    TimePeriodTIRStats,
)
from cgm_insulin_analyzer.metrics.hypo_metrics import (
    HypoPeriod,
    HypoStats,
    HypoEventReading,
    HypoEventWindow,
    DailyHypoSummary,
    OverallHypoStats,
)
from cgm_insulin_analyzer.metrics.iob_metrics import (
    IOBPoint,
    DailyInsulinSummary,
    HourlyInsulinPoint,
)
from cgm_insulin_analyzer.metrics.hypo_event import DetailedHypoEvent
from cgm_insulin_analyzer.metrics.agp_metrics import AGPTimeSlotStats
from cgm_insulin_analyzer.metrics.glucose_metrics import (
    GlucoseMetrics,
    BGRIResult,
    QuartileStats,
    HighLowIncidents,
    FluxResult,
)
from cgm_insulin_analyzer.metrics.roc_metrics import RoCDataPoint, RoCStats

__all__ = [
    "GlucoseRangeStats",
    "DailyReport",
    "DayOfWeekReport",
    "WeeklyReport",
    "HourlyTIRStats",
    "TimePeriodTIRStats",
    "HypoPeriod",
    "HypoStats",
    "HypoEventReading",
    "HypoEventWindow",
    "DailyHypoSummary",
    "OverallHypoStats",
    "IOBPoint",
    "DailyInsulinSummary",
    "HourlyInsulinPoint",
    "DetailedHypoEvent",
    "AGPTimeSlotStats",
    "GlucoseMetrics",
    "BGRIResult",
    "QuartileStats",
    "HighLowIncidents",
    "FluxResult",
    "RoCDataPoint",
    "RoCStats",
]
