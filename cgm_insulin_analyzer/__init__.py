"""
CGM/Insulin Analyzer - glucose and insulin pump time-series analytics.

This package provides modular components for:
- Loading CGM and insulin pump data from Glooko exports
- Time-in-range statistics with 3 or 5 glucose categories
- Hypoglycemia detection and per-event feature extraction
- Insulin-on-board decay curves
- Ambulatory Glucose Profile and rate-of-change analysis
"""

from cgm_insulin_analyzer.config import AnalysisConfig, load_config

__version__ = "1.0.0"
__all__ = ["AnalysisConfig", "load_config"]
