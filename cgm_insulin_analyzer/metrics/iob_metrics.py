"""
Insulin-on-board and insulin summary dataclasses.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any


@dataclass(frozen=True)
class IOBPoint:
    """Active insulin (units) at one sampled instant."""
    time: datetime
    basal_iob: float
    bolus_iob: float
    total_iob: float

    @property
    def time_label(self) -> str:
        return self.time.strftime('%H:%M')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'time': self.time.isoformat(),
            'time_label': self.time_label,
            'basal_iob': round(self.basal_iob, 2),
            'bolus_iob': round(self.bolus_iob, 2),
            'total_iob': round(self.total_iob, 2),
        }


@dataclass(frozen=True)
class DailyInsulinSummary:
    """Insulin totals (units) for one calendar date."""
    date: str
    basal_total: float
    bolus_total: float
    total_insulin: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'basal_total': round(self.basal_total, 1),
            'bolus_total': round(self.bolus_total, 1),
            'total_insulin': round(self.total_insulin, 1),
        }


@dataclass(frozen=True)
class HourlyInsulinPoint:
    """Insulin delivered during one clock hour and IOB at its start."""
    hour: int
    basal_in_hour: float
    bolus_in_hour: float
    active_iob: float

    @property
    def time_label(self) -> str:
        return f"{self.hour:02d}:00"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hour': self.hour,
            'time_label': self.time_label,
            'basal_in_hour': round(self.basal_in_hour, 1),
            'bolus_in_hour': round(self.bolus_in_hour, 1),
            'active_iob': round(self.active_iob, 2),
        }
