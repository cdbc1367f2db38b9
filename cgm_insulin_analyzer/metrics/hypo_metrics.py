"""
Hypoglycemia period and summary dataclasses.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Dict, Any

from cgm_insulin_analyzer.utils.units import mmol_to_mgdl


@dataclass(frozen=True)
class HypoPeriod:
    """A contiguous run of readings below the low threshold.

    Glucose values are in mmol/L.
    """
    start_time: datetime     # First reading below threshold
    end_time: datetime       # First recovery reading, or last reading if never recovered
    nadir_time: datetime
    nadir: float
    duration_minutes: float
    is_severe: bool          # Nadir below the very-low threshold

    @property
    def nadir_time_decimal(self) -> float:
        """Nadir time of day as decimal hours, for chart positioning."""
        return self.nadir_time.hour + self.nadir_time.minute / 60

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'nadir_time': self.nadir_time.isoformat(),
            'nadir_mmol_l': round(self.nadir, 1),
            'nadir_mg_dl': round(mmol_to_mgdl(self.nadir)),
            'duration_minutes': round(self.duration_minutes, 1),
            'is_severe': self.is_severe,
        }


@dataclass(frozen=True)
class HypoStats:
    """Aggregates over detected hypo periods."""
    severe_count: int
    non_severe_count: int
    total_count: int
    lowest_value: Optional[float]      # mmol/L, None when there are no periods
    longest_duration_minutes: float
    total_duration_minutes: float
    hypo_periods: Tuple[HypoPeriod, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'severe_count': self.severe_count,
            'non_severe_count': self.non_severe_count,
            'total_count': self.total_count,
            'lowest_value_mmol_l': round(self.lowest_value, 1) if self.lowest_value is not None else None,
            'longest_duration_minutes': round(self.longest_duration_minutes, 1),
            'total_duration_minutes': round(self.total_duration_minutes, 1),
            'hypo_periods': [p.to_dict() for p in self.hypo_periods],
        }


@dataclass(frozen=True)
class HypoEventReading:
    """One reading inside the window around a hypo period."""
    timestamp: datetime
    value: float                # mmol/L
    minutes_from_nadir: int     # Negative before the nadir
    is_nadir: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(),
            'value_mmol_l': round(self.value, 1),
            'minutes_from_nadir': self.minutes_from_nadir,
            'is_nadir': self.is_nadir,
        }


@dataclass(frozen=True)
class HypoEventWindow:
    """Readings from an hour before a period's start to an hour after its end."""
    event_id: int
    period: HypoPeriod
    readings: Tuple[HypoEventReading, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'period': self.period.to_dict(),
            'readings': [r.to_dict() for r in self.readings],
        }


@dataclass(frozen=True)
class DailyHypoSummary:
    """Hypo counts, durations and LBGI for one calendar date."""
    date: str                          # YYYY-MM-DD
    day_of_week: str
    severe_count: int
    non_severe_count: int
    total_count: int
    lowest_value: Optional[float]      # mmol/L, None on days without hypos
    longest_duration_minutes: float
    total_duration_minutes: float
    lbgi: float                        # 0 when the day has no positive readings

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'day_of_week': self.day_of_week,
            'severe_count': self.severe_count,
            'non_severe_count': self.non_severe_count,
            'total_count': self.total_count,
            'lowest_value_mmol_l': round(self.lowest_value, 1) if self.lowest_value is not None else None,
            'longest_duration_minutes': round(self.longest_duration_minutes, 1),
            'total_duration_minutes': round(self.total_duration_minutes, 1),
            'lbgi': round(self.lbgi, 2),
        }


@dataclass(frozen=True)
class OverallHypoStats:
    """Totals across daily hypo summaries."""
    total_days: int = 0
    days_with_hypos: int = 0
    total_hypo_events: int = 0
    total_severe_events: int = 0
    average_lbgi: float = 0.0
    days_with_lbgi_above_2_5: int = 0
    days_with_lbgi_above_5_0: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_days': self.total_days,
            'days_with_hypos': self.days_with_hypos,
            'total_hypo_events': self.total_hypo_events,
            'total_severe_events': self.total_severe_events,
            'average_lbgi': self.average_lbgi,
            'days_with_lbgi_above_2_5': self.days_with_lbgi_above_2_5,
            'days_with_lbgi_above_5_0': self.days_with_lbgi_above_5_0,
        }
