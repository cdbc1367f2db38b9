"""
Configuration management for CGM/Insulin Analyzer.

This module provides dataclasses for all configurable thresholds and settings,
with support for loading from YAML files. Values here are defaults for the
report and CLI layers; analytics functions always take thresholds explicitly.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Dict, Any
import yaml


MIN_INSULIN_DURATION_HOURS = 1.0
MAX_INSULIN_DURATION_HOURS = 10.0


@dataclass
class GlucoseThresholds:
    """Glucose thresholds in mmol/L.

    Expected ordering: very_low < low < high < very_high.
    The engine assumes this ordering; see validate_thresholds().
    """
    very_low: float = 3.0     # Level 2 hypoglycemia
    low: float = 3.9          # Level 1 hypoglycemia / TIR lower bound
    high: float = 10.0        # TIR upper bound
    very_high: float = 13.9   # Clinically significant hyperglycemia


@dataclass
class RangeSettings:
    """Settings for range categorization."""
    category_mode: int = 3  # 3 or 5 categories


@dataclass
class InsulinSettings:
    """Settings for insulin-on-board calculations."""
    duration_hours: float = 5.0      # Total insulin action duration
    iob_interval_minutes: int = 15   # Sampling resolution for daily IOB curves
    bolus_lookback_hours: float = 6.0


@dataclass
class HypoEventSettings:
    """Settings for the detailed hypo event feature extractor."""
    reading_tolerance_minutes: int = 5
    roc_window_minutes: int = 60
    roc_pair_min_minutes: float = 4.0
    roc_pair_max_minutes: float = 6.0


@dataclass
class AGPSettings:
    """Settings for the Ambulatory Glucose Profile."""
    slot_minutes: int = 5

    # Savitzky-Golay smoothing of percentile curves (charting only)
    savgol_window: int = 11  # Must be odd
    savgol_polyorder: int = 2


@dataclass
class AnalysisConfig:
    """Master configuration container."""
    glucose: GlucoseThresholds = field(default_factory=GlucoseThresholds)
    ranges: RangeSettings = field(default_factory=RangeSettings)
    insulin: InsulinSettings = field(default_factory=InsulinSettings)
    hypo_events: HypoEventSettings = field(default_factory=HypoEventSettings)
    agp: AGPSettings = field(default_factory=AGPSettings)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
        """Create config from dictionary."""
        return cls(
            glucose=GlucoseThresholds(**data.get('glucose', {})),
            ranges=RangeSettings(**data.get('ranges', {})),
            insulin=InsulinSettings(**data.get('insulin', {})),
            hypo_events=HypoEventSettings(**data.get('hypo_events', {})),
            agp=AGPSettings(**data.get('agp', {})),
        )


def validate_thresholds(thresholds: GlucoseThresholds) -> Optional[str]:
    """Check threshold ordering.

    Args:
        thresholds: Thresholds to validate (mmol/L).

    Returns:
        Error message for the first violated rule, or None if valid.
    """
    if thresholds.very_low <= 0:
        return 'Very low threshold must be greater than zero'
    if thresholds.low <= thresholds.very_low:
        return 'Low threshold must be greater than very low threshold'
    if thresholds.high <= thresholds.low:
        return 'High threshold must be greater than low threshold'
    if thresholds.very_high <= thresholds.high:
        return 'Very high threshold must be greater than high threshold'
    return None


def validate_insulin_duration(duration_hours: float) -> Optional[str]:
    """Check that insulin action duration is within the supported range."""
    if not MIN_INSULIN_DURATION_HOURS <= duration_hours <= MAX_INSULIN_DURATION_HOURS:
        return (
            f"Insulin duration must be between {MIN_INSULIN_DURATION_HOURS:g} "
            f"and {MAX_INSULIN_DURATION_HOURS:g} hours"
        )
    return None


def load_config(config_path: Optional[Path] = None) -> AnalysisConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config.yaml. If None, looks for config.yaml
                    in the cgm_insulin_analyzer package directory.

    Returns:
        AnalysisConfig with values from file merged with defaults.
    """
    if config_path is None:
        config_path = Path(__file__).parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        return AnalysisConfig()

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    # Create config with defaults, then override with file values
    config = AnalysisConfig()

    for section_name in ('glucose', 'ranges', 'insulin', 'hypo_events', 'agp'):
        section = getattr(config, section_name)
        for key, value in (data.get(section_name) or {}).items():
            if hasattr(section, key):
                setattr(section, key, value)

    return config


def save_config(config: AnalysisConfig, config_path: Path) -> None:
    """Save configuration to YAML file."""
    data = config.to_dict()
    with open(config_path, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
