"""
Detailed hypo event feature record.

One record per detected hypo period, joined with insulin history and the
surrounding glucose curve. Glucose values are in mg/dL, rates in mg/dL/min.
Any field without supporting data is None.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional, Dict, Any


@dataclass(frozen=True)
class DetailedHypoEvent:
    # Core identification and summary
    event_id: str                     # E-001, E-002, ... in onset order
    start_time: datetime
    nadir_value_mgdl: int
    duration_mins: int

    # Dynamics
    max_roc_mgdl_min: Optional[float]       # Steepest ~5-min drop in the hour before onset
    time_to_nadir_mins: int
    initial_roc_mgdl_min: Optional[float]   # Drop rate between ~15 and ~5 min before onset

    # Last two boluses before onset
    last_bolus_units: Optional[float]
    last_bolus_mins_prior: Optional[int]
    second_bolus_units: Optional[float]
    second_bolus_mins_prior: Optional[int]

    # Basal context (units delivered in whole hours before onset)
    programmed_basal_uhr: Optional[float]
    basal_units_h5_prior: Optional[float]
    basal_units_h3_prior: Optional[float]
    basal_units_h1_prior: Optional[float]

    time_of_day_code: int   # Hour of onset (0-23)

    # CGM curve
    g_t_minus_60: Optional[int]
    g_t_minus_30: Optional[int]
    g_t_minus_10: Optional[int]
    g_nadir_plus_15: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data['start_time'] = self.start_time.isoformat()
        return data
