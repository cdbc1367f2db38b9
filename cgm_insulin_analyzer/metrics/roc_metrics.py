"""
Rate-of-change dataclasses (rates in mmol/L per minute).
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RoCDataPoint:
    timestamp: datetime
    roc: float          # Absolute rate
    roc_raw: float      # Signed rate (negative = falling)
    glucose_value: float
    category: str       # good, medium or bad

    @property
    def time_decimal(self) -> float:
        return self.timestamp.hour + self.timestamp.minute / 60


@dataclass(frozen=True)
class RoCStats:
    min_roc: float
    max_roc: float
    sd_roc: float
    good_percentage: float
    medium_percentage: float
    bad_percentage: float
    good_count: int
    medium_count: int
    bad_count: int
    total_count: int
