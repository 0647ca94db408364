"""
Normalizing Extractor
=====================

Decorator that rescales another extractor's output in place with a fitted
``Normalizer``. Feature names and count are those of the wrapped extractor.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any, Callable, Iterable

from pydantic import BaseModel

from objfeatures.buffer import FeatureBuffer
from objfeatures.errors import DimensionMismatchError
from objfeatures.extractors.base import FeatureExtractor
from objfeatures.objects import MeasurementObject
from objfeatures.preprocessing.normalization import Normalizer


class NormalizingState(BaseModel):
    extractor: dict[str, Any]
    normalizer: dict[str, Any]


class NormalizingExtractor(FeatureExtractor):
    """Normalize the features written by ``extractor``.

    Parameters
    ----------
    extractor : FeatureExtractor
        Wrapped extractor.
    normalizer : Normalizer
        Fitted for exactly ``extractor.n_features`` features.

    Raises
    ------
    DimensionMismatchError
        If the normalizer width differs from the extractor's.
    """

    type_tag = "normalizing"

    def __init__(self, extractor: FeatureExtractor, normalizer: Normalizer):
        if normalizer.n_features != extractor.n_features:
            raise DimensionMismatchError(
                "Normalizer for wrapped extractor", extractor.n_features, normalizer.n_features
            )
        self._extractor = extractor
        self._normalizer = normalizer

    @property
    def extractor(self) -> FeatureExtractor:
        return self._extractor

    @property
    def normalizer(self) -> Normalizer:
        return self._normalizer

    @property
    def feature_names(self) -> list[str]:
        return self._extractor.feature_names

    @property
    def n_features(self) -> int:
        return self._extractor.n_features

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

        start = buffer.position
        self._extractor.extract_features(context, objects, buffer)
        stop = buffer.position

        written = stop - start
        if written == 0:
            return
        if n == 0 or written % n != 0:
            raise RuntimeError(
                f"Wrapped extractor wrote {written} values, not a multiple of {n} features"
            )
        # Post-pass over exactly the slots just written, object-major.
        block = buffer.view(start, stop).reshape(-1, n)
        block[...] = self._normalizer.normalize(block)

    def get_missing_features(self, context: Any, obj: MeasurementObject) -> list[str]:
        return self._extractor.get_missing_features(context, obj)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_tag,
            "extractor": self._extractor.to_dict(),
            "normalizer": self._normalizer.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        load_extractor: Callable[[dict[str, Any]], FeatureExtractor],
    ) -> "NormalizingExtractor":
        state = NormalizingState.model_validate(data)
        return cls(load_extractor(state.extractor), Normalizer.from_dict(state.normalizer))

    def __repr__(self) -> str:
        return f"NormalizingExtractor({self._extractor!r}, {self._normalizer!r})"
