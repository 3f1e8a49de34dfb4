"""Sample loading and load-time validation."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from data_sculpture.contracts import AxisMapping, ConfigurationError, Sample

logger = logging.getLogger(__name__)

MIN_FIELDS = 4


def normalize_samples(rows: Iterable[Sequence[float]]) -> Tuple[Sample, ...]:
    """Convert rows to immutable float tuples, checking the field count."""
    samples: List[Sample] = []
    width = None
    for row_index, row in enumerate(rows):
        try:
            values = tuple(float(v) for v in row)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Sample {row_index} is not numeric: {row!r}") from exc
        if width is None:
            width = len(values)
            if width < MIN_FIELDS:
                raise ConfigurationError(
                    f"Samples need at least {MIN_FIELDS} fields, got {width}"
                )
        elif len(values) != width:
            raise ConfigurationError(
                f"Sample {row_index} has {len(values)} fields, expected {width}"
            )
        if not all(np.isfinite(values)):
            raise ConfigurationError(f"Sample {row_index} has non-finite values")
        samples.append(values)
    return tuple(samples)


def validate_mapping(samples: Sequence[Sample], mapping: AxisMapping) -> None:
    if not samples:
        raise ConfigurationError("No samples to map")
    width = len(samples[0])
    for name, index in zip(("x", "y", "z", "magnitude"), mapping.as_tuple()):
        if not 0 <= index < width:
            raise ConfigurationError(
                f"Field index for {name} ({index}) out of range for {width}-field samples"
            )


def load_samples(path: Path, mapping: AxisMapping) -> Tuple[Sample, ...]:
    """Load samples from a JSON or CSV file and check them against ``mapping``.

    JSON may be a bare list of rows or an object with a ``samples`` key. CSV
    rows are numeric; a non-numeric first row is treated as a header.
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if isinstance(payload, dict):
            payload = payload.get("samples")
        if not isinstance(payload, list):
            raise ConfigurationError(f"No sample list found in {path}")
        rows = payload
    elif path.suffix.lower() in (".csv", ".txt"):
        rows = _read_csv_rows(path)
    else:
        raise ConfigurationError(f"Unsupported sample file type: {path.suffix}")

    samples = normalize_samples(rows)
    validate_mapping(samples, mapping)
    logger.info("Loaded %d samples (%d fields) from %s", len(samples), len(samples[0]), path)
    return samples


def _read_csv_rows(path: Path) -> List[List[str]]:
    with path.open("r", encoding="utf-8", newline="") as handle:
        rows = [row for row in csv.reader(handle) if row and any(cell.strip() for cell in row)]
    if rows and not _is_numeric_row(rows[0]):
        rows = rows[1:]
    return rows


def _is_numeric_row(row: Sequence[str]) -> bool:
    try:
        [float(cell) for cell in row]
    except ValueError:
        return False
    return True
