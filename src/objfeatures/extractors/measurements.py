"""
Measurement List Extractor
==========================

Base extractor: reads a fixed, ordered list of named measurements straight
off each object.

Design Principles:
    - One feature per configured name, in configured order
    - Missing measurements are written as NaN, never raised
    - ``get_missing_features`` lets callers warn before classifying
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any, Callable, Iterable, Sequence

import numpy as np
from pydantic import BaseModel

from objfeatures.buffer import FeatureBuffer
from objfeatures.extractors.base import FeatureExtractor
from objfeatures.objects import MeasurementObject
from objfeatures.utils.logging import get_logger

logger = get_logger(__name__)


class MeasurementListState(BaseModel):
    measurements: list[str]


class MeasurementListExtractor(FeatureExtractor):
    """Extract the named measurements of each object.

    Parameters
    ----------
    measurements : Sequence[str]
        Measurement names, one per feature. Duplicates are allowed (each
        produces its own column) but logged.
    """

    type_tag = "measurements"

    def __init__(self, measurements: Sequence[str]):
        if isinstance(measurements, str):
            raise TypeError("measurements must be a sequence of names, not a single string")
        self._measurements = tuple(str(m) for m in measurements)
        if len(set(self._measurements)) != len(self._measurements):
            logger.warning(
                "MeasurementListExtractor | duplicate measurement names in %s",
                list(self._measurements),
            )

    @property
    def measurements(self) -> tuple[str, ...]:
        return self._measurements

    @property
    def feature_names(self) -> list[str]:
        return list(self._measurements)

    @property
    def n_features(self) -> int:
        return len(self._measurements)

    def extract_features(
        self,
        context: Any,
        objects: Iterable[MeasurementObject],
        buffer: FeatureBuffer,
    ) -> None:
        n = self.n_features
        if not isinstance(objects, Collection):
            objects = list(objects)
        if len(objects) * n > buffer.remaining:
            raise BufferError(
                f"Need {len(objects) * n} values but buffer has {buffer.remaining} remaining"
            )

        row = np.empty(n, dtype=np.float64)
        for obj in objects:
            for i, name in enumerate(self._measurements):
                row[i] = obj.get_measurement(name) if obj.has_measurement(name) else np.nan
            buffer.put_array(row)

    def get_missing_features(self, context: Any, obj: MeasurementObject) -> list[str]:
        return [name for name in dict.fromkeys(self._measurements) if not obj.has_measurement(name)]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type_tag, "measurements": list(self._measurements)}

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        load_extractor: Callable[[dict[str, Any]], FeatureExtractor],
    ) -> "MeasurementListExtractor":
        state = MeasurementListState.model_validate(data)
        return cls(state.measurements)

    def __repr__(self) -> str:
        return f"MeasurementListExtractor({list(self._measurements)})"
