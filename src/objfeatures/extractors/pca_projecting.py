"""
PCA-Projecting Extractor
========================

Decorator that replaces another extractor's output with its projection onto
the components of a fitted ``PCAProjector``.

Design Principles:
    - The wrapped extractor writes into a scoped scratch matrix, never into
      the caller's buffer; the scratch matrix is released on every exit path
    - Output features are synthetic: ``component 1`` .. ``component k``
    - Missing-feature reports always refer to the raw measurements

Component names:
    Older persisted models carried one name more than there were components. ``legacy_component_names=True`` reproduces that
    list (``k + 1`` names) for such models; ``n_features`` is ``k`` either way.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any, Callable, Iterable

from pydantic import BaseModel

from objfeatures.buffer import FeatureBuffer
from objfeatures.errors import DimensionMismatchError
from objfeatures.extractors.base import FeatureExtractor
from objfeatures.objects import MeasurementObject
from objfeatures.preprocessing.pca import PCAProjector
from objfeatures.utils.scratch import scratch_matrix


class PCAProjectingState(BaseModel):
    extractor: dict[str, Any]
    projector: dict[str, Any]
    legacy_component_names: bool = False


class PCAProjectingExtractor(FeatureExtractor):
    """Project the features of ``extractor`` onto principal components.

    Parameters
    ----------
    extractor : FeatureExtractor
        Wrapped extractor of dimensionality D.
    projector : PCAProjector
        Fitted for D input features.
    legacy_component_names : bool
        Produce ``k + 1`` feature names, as older persisted models did.

    Raises
    ------
    DimensionMismatchError
        If the projector input width differs from the extractor's.
    """

    type_tag = "pca"

    def __init__(
        self,
        extractor: FeatureExtractor,
        projector: PCAProjector,
        legacy_component_names: bool = False,
    ):
        if projector.n_input_features != extractor.n_features:
            raise DimensionMismatchError(
                "PCA projector for wrapped extractor",
                extractor.n_features,
                projector.n_input_features,
            )
        self._extractor = extractor
        self._projector = projector
        self._legacy_component_names = bool(legacy_component_names)
        n_names = projector.n_components + (1 if self._legacy_component_names else 0)
        self._feature_names = tuple(f"component {i + 1}" for i in range(n_names))

    @property
    def extractor(self) -> FeatureExtractor:
        return self._extractor

    @property
    def projector(self) -> PCAProjector:
        return self._projector

    @property
    def legacy_component_names(self) -> bool:
        return self._legacy_component_names

    @property
    def feature_names(self) -> list[str]:
        return list(self._feature_names)

    @property
    def n_features(self) -> int:
        return self._projector.n_components

    def extract_features(
        self,
        context: Any,
        objects: Iterable[MeasurementObject],
        buffer: FeatureBuffer,
    ) -> None:
        if not isinstance(objects, Collection):
            objects = list(objects)
        n_objects = len(objects)
        if n_objects * self.n_features > buffer.remaining:
            raise BufferError(
                f"Need {n_objects * self.n_features} values but buffer has "
                f"{buffer.remaining} remaining"
            )

        with scratch_matrix(n_objects, self._extractor.n_features) as scratch:
            self._extractor.extract_features(context, objects, FeatureBuffer(scratch.flat))
            projected = self._projector.project(scratch.data)
            buffer.put_array(projected)

    def get_missing_features(self, context: Any, obj: MeasurementObject) -> list[str]:
        return self._extractor.get_missing_features(context, obj)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_tag,
            "extractor": self._extractor.to_dict(),
            "projector": self._projector.to_dict(),
            "legacy_component_names": self._legacy_component_names,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        load_extractor: Callable[[dict[str, Any]], FeatureExtractor],
    ) -> "PCAProjectingExtractor":
        state = PCAProjectingState.model_validate(data)
        return cls(
            load_extractor(state.extractor),
            PCAProjector.from_dict(state.projector),
            legacy_component_names=state.legacy_component_names,
        )

    def __repr__(self) -> str:
        return f"PCAProjectingExtractor({self._extractor!r}, {self._projector!r})"
