"""Report generation."""

from cgm_insulin_analyzer.reports.generator import ReportGenerator

__all__ = ["ReportGenerator"]
