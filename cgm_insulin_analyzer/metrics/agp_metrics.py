"""
Ambulatory Glucose Profile slot statistics.
"""

from dataclasses import dataclass
from typing import Dict, Any


@dataclass(frozen=True)
class AGPTimeSlotStats:
    """Percentiles (mmol/L) for one time-of-day slot across all days.

    Slots with no readings have count 0 and all values 0.
    """
    time_slot: str  # HH:MM, start of the slot
    lowest: float
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    highest: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'time_slot': self.time_slot,
            'lowest': round(self.lowest, 2),
            'p10': round(self.p10, 2),
            'p25': round(self.p25, 2),
            'p50': round(self.p50, 2),
            'p75': round(self.p75, 2),
            'p90': round(self.p90, 2),
            'highest': round(self.highest, 2),
            'count': self.count,
        }
