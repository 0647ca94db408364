"""
Object Model Boundary
=====================

The measurement lookup that extractors read from. Any object with
``has_measurement`` / ``get_measurement`` qualifies; ``DetectedObject`` is a
plain in-memory implementation used by the CLI and the tests.
"""

from __future__ import annotations

import math
from typing import Any, Iterator, Mapping, Optional, Protocol, runtime_checkable

import numpy as np
import pandas as pd


@runtime_checkable
class MeasurementObject(Protocol):
    """An object exposing named scalar measurements."""

    def has_measurement(self, name: str) -> bool:
        ...

    def get_measurement(self, name: str) -> float:
        ...


class DetectedObject:
    """A detected object with a name → value measurement map.

    Parameters
    ----------
    measurements : Mapping[str, float] or None
        Initial measurements. Insertion order is preserved.
    name : str or None
        Optional label, used only for logging.
    """

    def __init__(self, measurements: Optional[Mapping[str, float]] = None, name: Optional[str] = None):
        self.name = name
        self._measurements: dict[str, float] = {}
        if measurements:
            for key, value in measurements.items():
                self.put_measurement(key, value)

    def put_measurement(self, name: str, value: float) -> None:
        self._measurements[name] = float(value)

    def has_measurement(self, name: str) -> bool:
        return name in self._measurements

    def get_measurement(self, name: str) -> float:
        """Measurement value, or NaN if the object has no such measurement."""
        return self._measurements.get(name, math.nan)

    def measurement_names(self) -> list[str]:
        return list(self._measurements)

    def __iter__(self) -> Iterator[str]:
        return iter(self._measurements)

    def __len__(self) -> int:
        return len(self._measurements)

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name is not None else ""
        return f"DetectedObject({label}n_measurements={len(self)})"


def objects_from_table(
    table: pd.DataFrame,
    name_column: Optional[str] = None,
) -> list[DetectedObject]:
    """Build one DetectedObject per table row.

    Every numeric column becomes a measurement; NaN cells are treated as
    absent rather than stored, so ``has_measurement`` reports them missing.

    Parameters
    ----------
    table : pd.DataFrame
        Measurement table, one row per object.
    name_column : str or None
        Optional column holding object labels (excluded from measurements).

    Returns
    -------
    list[DetectedObject]
    """
    columns = [
        c for c in table.columns
        if c != name_column and pd.api.types.is_numeric_dtype(table[c])
    ]
    values = table[columns].to_numpy(dtype=np.float64)
    names: list[Any] = (
        table[name_column].tolist() if name_column is not None else [None] * len(table)
    )

    objects = []
    for row, label in zip(values, names):
        measurements = {
            str(col): float(v) for col, v in zip(columns, row) if not np.isnan(v)
        }
        objects.append(DetectedObject(measurements, name=None if label is None else str(label)))
    return objects
