"""
Report Generator - Text and structured report generation.

Formats analysis results for the terminal or for JSON export.
"""

from typing import Optional, Dict, Any, Sequence
from datetime import datetime

import structlog

from cgm_insulin_analyzer.config import AnalysisConfig
from cgm_insulin_analyzer.analyzers.glucose import CV_TARGET_THRESHOLD, MIN_DAYS_FOR_RELIABLE_HBA1C
from cgm_insulin_analyzer.analyzers.hypo import format_hypo_duration
from cgm_insulin_analyzer.metrics.glucose_metrics import GlucoseMetrics
from cgm_insulin_analyzer.metrics.hypo_event import DetailedHypoEvent
from cgm_insulin_analyzer.metrics.hypo_metrics import DailyHypoSummary, HypoStats, OverallHypoStats
from cgm_insulin_analyzer.metrics.iob_metrics import IOBPoint
from cgm_insulin_analyzer.metrics.range_metrics import GlucoseRangeStats
from cgm_insulin_analyzer.utils.units import GlucoseUnit, display_glucose_value

logger = structlog.get_logger(__name__)

RANGE_LABELS = {
    'very_low': 'Very Low',
    'low': 'Low',
    'in_range': 'In Range',
    'high': 'High',
    'very_high': 'Very High',
}


class ReportGenerator:
    """Generate analysis reports.

    Sections:
    - Time in Range: category counts and percentages
    - Glucose Summary: averages, variability and risk indices
    - Hypoglycemia: detected periods and per-event features
    - Insulin on Board: IOB curve for a selected day
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        unit: GlucoseUnit = GlucoseUnit.MMOL_L,
    ):
        """Initialize report generator.

        Args:
            config: Optional configuration (supplies thresholds for labels).
            unit: Display unit for glucose values.
        """
        self.config = config or AnalysisConfig()
        self.unit = GlucoseUnit(unit)

    def _glucose(self, mmol_value: Optional[float]) -> str:
        if mmol_value is None:
            return 'N/A'
        return f"{display_glucose_value(mmol_value, self.unit)} {self.unit.value}"

    def _range_bounds(self, category: str, five: bool) -> str:
        t = self.config.glucose

        def fmt(value: float) -> str:
            return display_glucose_value(value, self.unit)

        bounds = {
            'very_low': f"<{fmt(t.very_low)}",
            'low': f"{fmt(t.very_low)}-{fmt(t.low)}" if five else f"<{fmt(t.low)}",
            'in_range': f"{fmt(t.low)}-{fmt(t.high)}",
            'high': f"{fmt(t.high)}-{fmt(t.very_high)}" if five else f">{fmt(t.high)}",
            'very_high': f">{fmt(t.very_high)}",
        }
        return bounds[category]

    def generate_text_report(
        self,
        range_stats: Optional[GlucoseRangeStats] = None,
        glucose_metrics: Optional[GlucoseMetrics] = None,
        hypo_stats: Optional[HypoStats] = None,
        hypo_events: Sequence[DetailedHypoEvent] = (),
        daily_iob: Sequence[IOBPoint] = (),
        daily_hypos: Sequence[DailyHypoSummary] = (),
        hypo_overview: Optional[OverallHypoStats] = None,
    ) -> str:
        """Generate full text report.

        Args:
            range_stats: Range statistics over the analysed readings.
            glucose_metrics: Glucose summary metrics.
            hypo_stats: Hypo period statistics.
            hypo_events: Detailed hypo events.
            daily_iob: IOB curve for one day.
            daily_hypos: Per-date hypo summaries.
            hypo_overview: Hypo totals across all days.

        Returns:
            Formatted text report.
        """
        lines = []
        lines.append("=" * 60)
        lines.append("CGM / INSULIN ANALYSIS REPORT")
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
        lines.append("=" * 60)
        lines.append("")

        if range_stats:
            lines.append("-" * 60)
            lines.append("TIME IN RANGE")
            lines.append("-" * 60)
            lines.append(f"  Readings: {range_stats.total:,}")
            percentages = range_stats.percentages()
            for category in RANGE_LABELS:
                if category not in percentages:
                    continue
                count = getattr(range_stats, category)
                lines.append(
                    f"    {RANGE_LABELS[category]} ({self._range_bounds(category, range_stats.is_five_category)}): "
                    f"{percentages[category]:.1f}% ({count})"
                )
            lines.append("")

        if glucose_metrics:
            lines.append("-" * 60)
            lines.append("GLUCOSE SUMMARY")
            lines.append("-" * 60)
            if glucose_metrics.date_range:
                start, end = glucose_metrics.date_range
                lines.append(f"  Date Range: {start.strftime('%Y-%m-%d')} to {end.strftime('%Y-%m-%d')}")
            lines.append(f"  Days with data: {glucose_metrics.days_with_data}")
            lines.append("")
            lines.append("  Statistics:")
            lines.append(f"    Mean: {self._glucose(glucose_metrics.average)}")
            lines.append(f"    Median: {self._glucose(glucose_metrics.median)}")
            if glucose_metrics.cv is not None:
                lines.append(f"    CV: {glucose_metrics.cv:.1f}% (target <={CV_TARGET_THRESHOLD}%)")
            if glucose_metrics.flux:
                lines.append(f"    Flux: {glucose_metrics.flux.grade} ({glucose_metrics.flux.description})")
            lines.append("")
            lines.append("  Key Indicators:")
            if glucose_metrics.estimated_hba1c is not None:
                lines.append(
                    f"    Est. HbA1c: {glucose_metrics.estimated_hba1c:.1f}% "
                    f"({glucose_metrics.estimated_hba1c_mmol_mol:.0f} mmol/mol)"
                )
            if glucose_metrics.bgri:
                lines.append(f"    LBGI (hypo risk): {glucose_metrics.bgri.lbgi:.2f}")
                lines.append(f"    HBGI (hyper risk): {glucose_metrics.bgri.hbgi:.2f}")
            if glucose_metrics.j_index is not None:
                lines.append(f"    J-Index: {glucose_metrics.j_index:.1f}")
            lines.append(f"    Wake-up average (06-09): {self._glucose(glucose_metrics.wakeup_average)}")
            lines.append(f"    Bedtime average (21-24): {self._glucose(glucose_metrics.bedtime_average)}")
            lines.append("")

        if hypo_stats:
            lines.append("-" * 60)
            lines.append("HYPOGLYCEMIA")
            lines.append("-" * 60)
            lines.append(f"  Periods: {hypo_stats.total_count} "
                         f"({hypo_stats.severe_count} severe, {hypo_stats.non_severe_count} non-severe)")
            lines.append(f"  Lowest: {self._glucose(hypo_stats.lowest_value)}")
            lines.append(f"  Longest: {format_hypo_duration(hypo_stats.longest_duration_minutes)}")
            lines.append(f"  Total time: {format_hypo_duration(hypo_stats.total_duration_minutes)}")
            if hypo_overview and hypo_overview.total_days:
                lines.append(f"  Days with hypos: {hypo_overview.days_with_hypos} of {hypo_overview.total_days}")
                lines.append(
                    f"  Average daily LBGI: {hypo_overview.average_lbgi:.2f} "
                    f"({hypo_overview.days_with_lbgi_above_2_5} days >2.5, "
                    f"{hypo_overview.days_with_lbgi_above_5_0} days >5.0)"
                )
            hypo_days = [d for d in daily_hypos if d.total_count]
            if hypo_days:
                lines.append("  By day:")
                for day in hypo_days:
                    lines.append(
                        f"    {day.date} {day.day_of_week[:3]}: {day.total_count} "
                        f"({day.severe_count} severe), lowest {self._glucose(day.lowest_value)}, LBGI {day.lbgi:.2f}"
                    )
            lines.append("")

        if hypo_events:
            lines.append("  Events:")
            for event in hypo_events:
                bolus = (
                    f"{event.last_bolus_units}U {event.last_bolus_mins_prior}m prior"
                    if event.last_bolus_units is not None else "no bolus in lookback"
                )
                lines.append(
                    f"    {event.event_id} {event.start_time.strftime('%Y-%m-%d %H:%M')} "
                    f"nadir {event.nadir_value_mgdl} mg/dL, {event.duration_mins}m, {bolus}"
                )
            lines.append("")

        if daily_iob:
            peak = max(daily_iob, key=lambda p: p.total_iob)
            lines.append("-" * 60)
            lines.append(f"INSULIN ON BOARD ({daily_iob[0].time.strftime('%Y-%m-%d')})")
            lines.append("-" * 60)
            lines.append(f"  Peak IOB: {peak.total_iob:.2f} U at {peak.time_label}")
            for point in daily_iob:
                if point.time.minute == 0 and point.time.hour % 3 == 0:
                    lines.append(
                        f"    {point.time_label}  basal {point.basal_iob:.2f}  "
                        f"bolus {point.bolus_iob:.2f}  total {point.total_iob:.2f}"
                    )
            lines.append("")

        lines.append("=" * 60)
        lines.append("END OF REPORT")
        lines.append("=" * 60)

        logger.debug("text_report_generated", lines=len(lines))
        return "\n".join(lines)

    def generate_summary_dict(
        self,
        range_stats: Optional[GlucoseRangeStats] = None,
        glucose_metrics: Optional[GlucoseMetrics] = None,
        hypo_stats: Optional[HypoStats] = None,
        hypo_events: Sequence[DetailedHypoEvent] = (),
        daily_iob: Sequence[IOBPoint] = (),
        daily_hypos: Sequence[DailyHypoSummary] = (),
        hypo_overview: Optional[OverallHypoStats] = None,
    ) -> Dict[str, Any]:
        """Generate structured summary dictionary.

        Returns:
            JSON-serializable dictionary with summary data.
        """
        return {
            'generated_at': datetime.now().isoformat(),
            'unit': self.unit.value,
            'thresholds_mmol_l': self.config.to_dict()['glucose'],
            'time_in_range': range_stats.to_dict() if range_stats else None,
            'glucose': glucose_metrics.to_dict() if glucose_metrics else None,
            'hypos': hypo_stats.to_dict() if hypo_stats else None,
            'hypo_events': [e.to_dict() for e in hypo_events],
            'daily_hypos': [d.to_dict() for d in daily_hypos],
            'hypo_overview': hypo_overview.to_dict() if hypo_overview else None,
            'daily_iob': [p.to_dict() for p in daily_iob],
            'interpretation': self.get_interpretation(range_stats, glucose_metrics),
        }

    def get_interpretation(
        self,
        range_stats: Optional[GlucoseRangeStats] = None,
        glucose_metrics: Optional[GlucoseMetrics] = None,
    ) -> Dict[str, str]:
        """Generate interpretive text for key metrics.

        Returns:
            Dictionary with metric interpretations.
        """
        interpretations = {}

        if range_stats and range_stats.total > 0:
            tir = range_stats.percentages()['in_range']
            if tir >= 70:
                interpretations['tir'] = 'Meeting consensus target (>70%)'
            elif tir >= 50:
                interpretations['tir'] = 'Below target, focus on reducing highs/lows'
            else:
                interpretations['tir'] = 'Significantly below target'

        if glucose_metrics:
            cv = glucose_metrics.cv
            if cv is not None:
                if cv < 33:
                    interpretations['cv'] = 'Excellent glycemic stability'
                elif cv <= CV_TARGET_THRESHOLD:
                    interpretations['cv'] = 'Good glycemic stability (at target)'
                elif cv < 40:
                    interpretations['cv'] = 'Moderate variability, room for improvement'
                else:
                    interpretations['cv'] = 'High variability'

            if glucose_metrics.estimated_hba1c is not None:
                if glucose_metrics.days_with_data < MIN_DAYS_FOR_RELIABLE_HBA1C:
                    interpretations['hba1c'] = (
                        f"Estimate based on {glucose_metrics.days_with_data} days; "
                        f"{MIN_DAYS_FOR_RELIABLE_HBA1C}+ days recommended"
                    )
                else:
                    interpretations['hba1c'] = 'Estimate based on sufficient data'

        return interpretations
