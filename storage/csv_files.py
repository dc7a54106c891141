from __future__ import annotations

import csv
import logging
import math
import os
import stat
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from models.records import Observation
from models.schemas import OUTPUT_COLUMNS, ClusterSummary
from services.errors import SinkWriteError, SourceReadError
from settings import get_settings

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("x_position", "y_position", "sensor_id", "timestamp_id", "unique_id")


class CsvObservationSource:
    """Reads observations from a CSV file, in file order."""

    def __init__(self, path: Path, encoding: str = "utf-8") -> None:
        self.path = path
        self.encoding = encoding

    def read(self) -> List[Observation]:
        try:
            with self.path.open("r", encoding=self.encoding, newline="") as handle:
                observations = self._parse(csv.DictReader(handle))
        except FileNotFoundError as exc:
            raise SourceReadError(f"Input file {str(self.path)!r} does not exist.") from exc
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise SourceReadError(f"Unable to read input file {str(self.path)!r}: {exc}") from exc

        logger.info(
            "Loaded observations",
            extra={"input_path": str(self.path), "observation_count": len(observations)},
        )
        return observations

    def _parse(self, reader: csv.DictReader) -> List[Observation]:
        if not reader.fieldnames:
            raise SourceReadError("CSV file is missing a header row.")

        normalized = {name.lower().strip(): name for name in reader.fieldnames if name}
        missing = [column for column in REQUIRED_COLUMNS if column not in normalized]
        if missing:
            raise SourceReadError(f"CSV missing required columns: {', '.join(missing)}")

        observations: List[Observation] = []
        for row_number, row in enumerate(reader, start=2):
            values = {
                column: (row.get(normalized[column]) or "").strip()
                for column in REQUIRED_COLUMNS
            }
            observations.append(
                Observation(
                    x_position=self._parse_coordinate(values, "x_position", row_number),
                    y_position=self._parse_coordinate(values, "y_position", row_number),
                    sensor_id=values["sensor_id"],
                    timestamp_id=values["timestamp_id"],
                    unique_id=values["unique_id"] or Observation.ABSENT_UNIQUE_ID,
                )
            )
        return observations

    @staticmethod
    def _parse_coordinate(values: Dict[str, str], column: str, row_number: int) -> float:
        raw = values[column]
        try:
            parsed = float(raw)
        except ValueError:
            parsed = math.nan
        if not math.isfinite(parsed):
            raise SourceReadError(
                f"Row {row_number}: invalid numeric value for {column}: {raw!r}",
                row_number=row_number,
            )
        return parsed


class CsvSummarySink:
    """Writes cluster summaries to a CSV file, replacing it atomically."""

    def __init__(self, path: Path, encoding: str = "utf-8") -> None:
        self.path = path
        self.encoding = encoding

    def write(self, summaries: Iterable[ClusterSummary]) -> int:
        rows = [summary.to_row() for summary in summaries]
        temp_path: Optional[Path] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            temp_path = Path(temp_name)
            with os.fdopen(fd, "w", encoding=self.encoding, newline="") as handle:
                writer = csv.DictWriter(handle, fieldnames=list(OUTPUT_COLUMNS))
                writer.writeheader()
                writer.writerows(rows)
            os.chmod(temp_path, self._target_mode())
            os.replace(temp_path, self.path)
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise SinkWriteError(f"Unable to write output file {str(self.path)!r}: {exc}") from exc

        logger.info(
            "Wrote cluster summaries",
            extra={"output_path": str(self.path), "cluster_count": len(rows)},
        )
        return len(rows)

    def _target_mode(self) -> int:
        """Keep an existing file's permissions, otherwise honour the umask."""
        if self.path.is_file():
            return stat.S_IMODE(self.path.stat().st_mode)
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


@lru_cache
def build_default_source(path: Optional[str] = None) -> CsvObservationSource:
    settings = get_settings()
    return CsvObservationSource(Path(settings.input_path if path is None else path))


@lru_cache
def build_default_sink(path: Optional[str] = None) -> CsvSummarySink:
    settings = get_settings()
    return CsvSummarySink(Path(settings.output_path if path is None else path))
