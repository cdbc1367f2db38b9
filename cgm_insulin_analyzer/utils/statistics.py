"""
Statistical utilities for glucose and insulin analysis.

Provides common statistical calculations used across analyzers.
"""

import math
from typing import Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd


def calculate_percentage(count: int, total: int) -> float:
    """Calculate a percentage rounded half-up to one decimal place.

    Args:
        count: Count value.
        total: Total value.

    Returns:
        Percentage (0 when total is 0).
    """
    if total == 0:
        return 0.0
    return math.floor((count / total) * 1000 + 0.5) / 10


def round_half_up(value: float, decimals: int = 0) -> float:
    """Round with half-up semantics (Python's round() is half-to-even)."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def sample_std(values: Union[np.ndarray, pd.Series, Sequence[float]]) -> Optional[float]:
    """Sample standard deviation (n-1), or None with fewer than two values."""
    values = np.asarray(values, dtype=float)
    if len(values) < 2:
        return None
    return float(np.std(values, ddof=1))


def calculate_cv(values: Union[np.ndarray, pd.Series, Sequence[float]]) -> Optional[float]:
    """Calculate coefficient of variation (CV).

    CV = (sample standard deviation / mean) × 100

    This is a key metric for glycemic variability.
    Target: ≤36% per International Consensus (Battelino 2019).

    Args:
        values: Array of values.

    Returns:
        CV as a percentage, or None with fewer than two values or a zero mean.
    """
    values = np.asarray(values, dtype=float)
    values = values[~np.isnan(values)]

    if len(values) < 2 or np.mean(values) == 0:
        return None

    return float((np.std(values, ddof=1) / np.mean(values)) * 100)


def calculate_quantiles(
    values: Union[np.ndarray, pd.Series, Sequence[float]],
    quantiles: Sequence[float] = (0.25, 0.50, 0.75)
) -> Dict[str, Optional[float]]:
    """Calculate multiple quantiles for a dataset.

    Args:
        values: Array of values.
        quantiles: Quantiles to calculate (0-1).

    Returns:
        Dictionary mapping quantile names (e.g., 'q25', 'q50') to values,
        None for each when there is no data.
    """
    values = np.asarray(values, dtype=float)
    values = values[~np.isnan(values)]

    if len(values) == 0:
        return {f"q{int(round(q * 100))}": None for q in quantiles}

    return {
        f"q{int(round(q * 100))}": float(np.percentile(values, q * 100))
        for q in quantiles
    }
