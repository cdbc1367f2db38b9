"""
Glooko export loader.

Parses Glooko ZIP exports into glucose and insulin readings.
"""

import io
import re
import zipfile
from pathlib import Path
from typing import List, Optional, Tuple, Union

import pandas as pd
import structlog

from cgm_insulin_analyzer.readings import (
    GlucoseReading,
    InsulinReading,
    InsulinType,
    sort_readings,
)
from cgm_insulin_analyzer.utils.units import (
    GLUCOSE_COLUMN_NAMES,
    GlucoseUnit,
    detect_glucose_unit,
    mgdl_to_mmol,
)

logger = structlog.get_logger(__name__)


class GlookoExportLoader:
    """Loader for Glooko ZIP exports.

    Each dataset is one or more CSV files named `<dataset>_data_<n>.csv`:
    - cgm / bg: sensor and meter glucose readings
    - basal / bolus: pump insulin deliveries

    Every CSV has a metadata line first, the column headers on the second
    line, and data after that. Files are tab- or comma-separated and may
    use English or German column names.
    """

    GLUCOSE_DATASETS = ('cgm', 'bg')
    INSULIN_DATASETS = {
        'basal': InsulinType.BASAL,
        'bolus': InsulinType.BOLUS,
    }

    # Lowercase substrings, matched in order of preference
    TIMESTAMP_COLUMNS = ['timestamp', 'zeitstempel']
    GLUCOSE_COLUMNS = list(GLUCOSE_COLUMN_NAMES)
    DOSE_COLUMNS = [
        'dose',
        'delivered',
        'abgegebenes insulin',
        'anfängliche abgabe',
        'verzögerte abgabe',
        'units',
        'rate',
    ]

    def __init__(self, filepath: Union[str, Path]):
        """Initialize loader with file path.

        Args:
            filepath: Path to the Glooko ZIP export.
        """
        self.filepath = Path(filepath)
        self._glucose: Optional[List[GlucoseReading]] = None
        self._insulin: Optional[List[InsulinReading]] = None

    def load_glucose(self) -> List[GlucoseReading]:
        """Load CGM and BG readings (mmol/L), sorted by time."""
        readings = []
        for dataset in self.GLUCOSE_DATASETS:
            for name, df in self._read_dataset(dataset):
                readings.extend(self._parse_glucose(name, df))

        self._glucose = sort_readings(readings)
        logger.info("glucose_readings_loaded", path=str(self.filepath), count=len(self._glucose))
        return self._glucose

    def load_insulin(self) -> List[InsulinReading]:
        """Load basal and bolus deliveries, sorted by time."""
        readings = []
        for dataset, insulin_type in self.INSULIN_DATASETS.items():
            for name, df in self._read_dataset(dataset):
                readings.extend(self._parse_insulin(name, df, insulin_type))

        self._insulin = sort_readings(readings)
        logger.info("insulin_readings_loaded", path=str(self.filepath), count=len(self._insulin))
        return self._insulin

    @property
    def glucose(self) -> List[GlucoseReading]:
        """Get glucose readings (loads on first access)."""
        if self._glucose is None:
            self._glucose = self.load_glucose()
        return self._glucose

    @property
    def insulin(self) -> List[InsulinReading]:
        """Get insulin readings (loads on first access)."""
        if self._insulin is None:
            self._insulin = self.load_insulin()
        return self._insulin

    def get_date_range(self) -> tuple:
        """Get date range of glucose data.

        Returns:
            Tuple of (start, end), or (None, None) without readings.
        """
        if not self.glucose:
            return (None, None)
        return (self.glucose[0].timestamp, self.glucose[-1].timestamp)

    def get_readings_count(self) -> int:
        """Get total number of glucose readings."""
        return len(self.glucose)

    def list_csv_files(self) -> List[str]:
        """Names of all CSV files in the archive."""
        with self._open() as archive:
            return [n for n in archive.namelist() if n.lower().endswith('.csv')]

    def _open(self) -> zipfile.ZipFile:
        if not self.filepath.exists():
            raise FileNotFoundError(f"Export not found: {self.filepath}")
        return zipfile.ZipFile(self.filepath)

    def _read_dataset(self, dataset: str) -> List[Tuple[str, pd.DataFrame]]:
        """Read every CSV file of one dataset as string-typed DataFrames."""
        pattern = re.compile(rf'(^|/){dataset}_data(_\d+)?\.csv$', re.IGNORECASE)
        frames = []

        with self._open() as archive:
            for name in sorted(archive.namelist()):
                if not pattern.search(name):
                    continue
                content = archive.read(name).decode('utf-8-sig')
                df = self._read_csv(content)
                if df is not None:
                    frames.append((name, df))

        return frames

    @staticmethod
    def _detect_delimiter(header_line: str) -> str:
        return ',' if header_line.count(',') > header_line.count('\t') else '\t'

    def _read_csv(self, content: str) -> Optional[pd.DataFrame]:
        lines = content.strip().splitlines()
        if len(lines) < 2:
            return None

        delimiter = self._detect_delimiter(lines[1])
        df = pd.read_csv(
            io.StringIO(content.strip()),
            sep=delimiter,
            skiprows=1,
            dtype=str,
            skip_blank_lines=True,
        )
        df.columns = df.columns.str.strip()
        df.attrs['delimiter'] = delimiter
        return df

    def _find_column(self, df: pd.DataFrame, candidates: list) -> Optional[str]:
        """Find the first column whose lowercase name contains a candidate.

        Args:
            df: DataFrame to search.
            candidates: Lowercase substrings in order of preference.

        Returns:
            Matching column name or None.
        """
        for candidate in candidates:
            for column in df.columns:
                if candidate in column.lower():
                    return column
        return None

    @staticmethod
    def _to_number(df: pd.DataFrame, column: str) -> pd.Series:
        values = df[column].str.strip()
        # Tab-separated German exports use decimal commas
        if df.attrs.get('delimiter') == '\t':
            values = values.str.replace(',', '.', regex=False)
        return pd.to_numeric(values, errors='coerce')

    def _require_columns(self, name: str, df: pd.DataFrame, candidates: dict) -> dict:
        found = {key: self._find_column(df, options) for key, options in candidates.items()}
        if any(column is None for column in found.values()):
            raise ValueError(
                f"Could not find required columns in {name}. "
                f"Found columns: {list(df.columns)}"
            )
        return found

    def _log_skipped(self, name: str, total: int, kept: int) -> None:
        if kept < total:
            logger.warning("csv_rows_skipped", file=name, skipped=total - kept, total=total)

    def _parse_glucose(self, name: str, df: pd.DataFrame) -> List[GlucoseReading]:
        columns = self._require_columns(name, df, {
            'timestamp': self.TIMESTAMP_COLUMNS,
            'glucose': self.GLUCOSE_COLUMNS,
        })

        timestamps = pd.to_datetime(df[columns['timestamp']].str.strip(), errors='coerce')
        values = self._to_number(df, columns['glucose'])
        if detect_glucose_unit(list(df.columns)) is GlucoseUnit.MG_DL:
            values = values.map(mgdl_to_mmol)

        valid = timestamps.notna() & values.notna() & (values > 0)
        self._log_skipped(name, len(df), int(valid.sum()))

        return [
            GlucoseReading(timestamp=ts.to_pydatetime(), value=float(value))
            for ts, value in zip(timestamps[valid], values[valid])
        ]

    def _parse_insulin(self, name: str, df: pd.DataFrame, insulin_type: InsulinType) -> List[InsulinReading]:
        columns = self._require_columns(name, df, {
            'timestamp': self.TIMESTAMP_COLUMNS,
            'dose': self.DOSE_COLUMNS,
        })

        timestamps = pd.to_datetime(df[columns['timestamp']].str.strip(), errors='coerce')
        doses = self._to_number(df, columns['dose'])

        valid = timestamps.notna() & doses.notna() & (doses >= 0)
        self._log_skipped(name, len(df), int(valid.sum()))

        return [
            InsulinReading(timestamp=ts.to_pydatetime(), dose=float(dose), insulin_type=insulin_type)
            for ts, dose in zip(timestamps[valid], doses[valid])
        ]
