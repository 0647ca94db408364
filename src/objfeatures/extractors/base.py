"""
Feature Extractor Base Class
============================

Abstract interface that every feature extractor must implement.

Design Principles:
    - Output goes into a caller-owned ``FeatureBuffer``, object-major and
      feature-minor, exactly ``n_objects * n_features`` values per call
    - ``feature_names`` / ``n_features`` describe the columns a classifier sees
    - ``get_missing_features`` is a side-effect-free pre-flight check
    - Extractors are immutable once built and may be shared across threads

Required Overrides:
    - ``feature_names`` → list[str]
    - ``n_features`` → int
    - ``extract_features(context, objects, buffer)``
    - ``get_missing_features(context, obj)`` → list[str]
    - ``to_dict()`` / ``from_dict(data, load_extractor)`` for persistence
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Collection, Iterable

import numpy as np

from objfeatures.buffer import FeatureBuffer
from objfeatures.objects import MeasurementObject


class FeatureExtractor(ABC):
    """Abstract base for all feature extractors.

    ``context`` is the image (or any other object) the features are computed
    for. The bundled extractors only pass it along; custom extractors that
    need pixel access can use it.
    """

    type_tag: ClassVar[str]

    @property
    @abstractmethod
    def feature_names(self) -> list[str]:
        """Ordered feature names (a fresh list on every call)."""
        ...

    @property
    @abstractmethod
    def n_features(self) -> int:
        """Number of values written per object."""
        ...

    @abstractmethod
    def extract_features(
        self,
        context: Any,
        objects: Iterable[MeasurementObject],
        buffer: FeatureBuffer,
    ) -> None:
        """Append features for ``objects`` to ``buffer`` at its cursor.

        Parameters
        ----------
        context : Any
            Image context, passed through to inner extractors.
        objects : iterable of MeasurementObject
            Objects in the order their feature vectors are written.
        buffer : FeatureBuffer
            Destination; its cursor advances by ``n_objects * n_features``.
        """
        ...

    @abstractmethod
    def get_missing_features(self, context: Any, obj: MeasurementObject) -> list[str]:
        """Names of the raw measurements ``obj`` lacks (empty if none)."""
        ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Tagged, JSON-compatible document for this node and its children."""
        ...

    @classmethod
    @abstractmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        load_extractor: Callable[[dict[str, Any]], "FeatureExtractor"],
    ) -> "FeatureExtractor":
        """Rebuild a node; ``load_extractor`` restores any wrapped node."""
        ...

    def extract_matrix(self, context: Any, objects: Collection[MeasurementObject]) -> np.ndarray:
        """Extract features into a new ``(n_objects, n_features)`` float32 matrix."""
        objects = list(objects)
        buffer = FeatureBuffer.allocate(len(objects) * self.n_features)
        self.extract_features(context, objects, buffer)
        return buffer.array.reshape(len(objects), self.n_features)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_features={self.n_features})"
