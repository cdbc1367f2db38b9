"""
Glucose summary metrics dataclasses.

Follows international consensus guidelines (Battelino 2019) for CGM metrics.
Values are in mmol/L unless the field name says otherwise.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Dict, Any


@dataclass(frozen=True)
class BGRIResult:
    """Blood Glucose Risk Index (Kovatchev)."""
    lbgi: float  # Low Blood Glucose Index (hypoglycemia risk)
    hbgi: float  # High Blood Glucose Index (hyperglycemia risk)
    bgri: float  # LBGI + HBGI


@dataclass(frozen=True)
class QuartileStats:
    q25: float
    q50: float
    q75: float
    min: float
    max: float


@dataclass(frozen=True)
class HighLowIncidents:
    """Number of transitions into each out-of-range zone."""
    high_count: int
    low_count: int
    very_high_count: int
    very_low_count: int


@dataclass(frozen=True)
class FluxResult:
    grade: str    # A+, A, B, C, D or F
    score: float  # Underlying CV%
    description: str


@dataclass(frozen=True)
class GlucoseMetrics:
    """Summary CGM metrics for a set of readings.

    Metrics that need more data than is available are None.
    """
    average: Optional[float]
    median: Optional[float]
    std: Optional[float]
    cv: Optional[float]                      # Coefficient of variation (%)
    estimated_hba1c: Optional[float]         # %
    estimated_hba1c_mmol_mol: Optional[float]
    bgri: Optional[BGRIResult]
    j_index: Optional[float]                 # mg/dL based
    quartiles: Optional[QuartileStats]
    flux: Optional[FluxResult]
    incidents: HighLowIncidents
    unicorns: int
    wakeup_average: Optional[float]
    bedtime_average: Optional[float]

    # Data quality
    readings_count: int
    days_with_data: int
    date_range: Optional[Tuple[datetime, datetime]]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        def _r(value: Optional[float], digits: int = 1) -> Optional[float]:
            return round(value, digits) if value is not None else None

        return {
            'average_mmol_l': _r(self.average),
            'median_mmol_l': _r(self.median),
            'std_mmol_l': _r(self.std, 2),
            'cv_percent': _r(self.cv),
            'estimated_hba1c_percent': _r(self.estimated_hba1c),
            'estimated_hba1c_mmol_mol': _r(self.estimated_hba1c_mmol_mol, 0),
            'lbgi': _r(self.bgri.lbgi, 2) if self.bgri else None,
            'hbgi': _r(self.bgri.hbgi, 2) if self.bgri else None,
            'bgri': _r(self.bgri.bgri, 2) if self.bgri else None,
            'j_index': _r(self.j_index),
            'q25': _r(self.quartiles.q25) if self.quartiles else None,
            'q50': _r(self.quartiles.q50) if self.quartiles else None,
            'q75': _r(self.quartiles.q75) if self.quartiles else None,
            'flux_grade': self.flux.grade if self.flux else None,
            'high_incidents': self.incidents.high_count,
            'low_incidents': self.incidents.low_count,
            'very_high_incidents': self.incidents.very_high_count,
            'very_low_incidents': self.incidents.very_low_count,
            'unicorns': self.unicorns,
            'wakeup_average_mmol_l': _r(self.wakeup_average),
            'bedtime_average_mmol_l': _r(self.bedtime_average),
            'readings_count': self.readings_count,
            'days_with_data': self.days_with_data,
            'start_date': self.date_range[0].isoformat() if self.date_range else None,
            'end_date': self.date_range[1].isoformat() if self.date_range else None,
        }
