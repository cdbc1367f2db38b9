"""
Range statistics dataclasses.

Counts are per category; percentages are derived on demand.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

from cgm_insulin_analyzer.utils.statistics import calculate_percentage


@dataclass(frozen=True)
class GlucoseRangeStats:
    """Reading counts per glucose category.

    very_low and very_high are None in 3-category mode.
    """
    low: int
    in_range: int
    high: int
    total: int
    very_low: Optional[int] = None
    very_high: Optional[int] = None

    @property
    def is_five_category(self) -> bool:
        return self.very_low is not None

    def percentages(self) -> Dict[str, float]:
        """Percentage of total per category (one decimal, half-up)."""
        result = {
            'low': calculate_percentage(self.low, self.total),
            'in_range': calculate_percentage(self.in_range, self.total),
            'high': calculate_percentage(self.high, self.total),
        }
        if self.is_five_category:
            result['very_low'] = calculate_percentage(self.very_low, self.total)
            result['very_high'] = calculate_percentage(self.very_high, self.total)
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {}
        if self.is_five_category:
            data['very_low'] = self.very_low
        data['low'] = self.low
        data['in_range'] = self.in_range
        data['high'] = self.high
        if self.is_five_category:
            data['very_high'] = self.very_high
        data['total'] = self.total
        data['percentages'] = self.percentages()
        return data


@dataclass(frozen=True)
class DailyReport:
    date: str  # YYYY-MM-DD
    stats: GlucoseRangeStats

    def to_dict(self) -> Dict[str, Any]:
        return {'date': self.date, **self.stats.to_dict()}


@dataclass(frozen=True)
class DayOfWeekReport:
    day: str  # Monday..Sunday, Workday or Weekend
    stats: GlucoseRangeStats

    def to_dict(self) -> Dict[str, Any]:
        return {'day': self.day, **self.stats.to_dict()}


@dataclass(frozen=True)
class WeeklyReport:
    week_label: str  # e.g. "Jan 27-Feb 2"
    week_start: str  # Monday, YYYY-MM-DD
    week_end: str    # Sunday, YYYY-MM-DD
    stats: GlucoseRangeStats

    def to_dict(self) -> Dict[str, Any]:
        return {
            'week_label': self.week_label,
            'week_start': self.week_start,
            'week_end': self.week_end,
            **self.stats.to_dict(),
        }


@dataclass(frozen=True)
class HourlyTIRStats:
    hour: int         # First hour of the group
    hour_label: str   # "07:00" or "06:00-07:59"
    stats: GlucoseRangeStats


@dataclass(frozen=True)
class TimePeriodTIRStats:
    period: str  # e.g. "14 days"
    days: int
    stats: GlucoseRangeStats
