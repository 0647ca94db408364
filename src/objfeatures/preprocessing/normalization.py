"""
Feature Normalization
=====================

Per-feature affine rescaling fitted once from training samples.

Normalized value::

    v' = (v + offsets[i]) * scales[i]

with non-finite ``v`` first replaced by ``missing_value`` when one is set.

Modes:
    none           offsets 0, scales 1 (still substitutes missing values)
    mean_variance  offset = -mean, scale = 1 / std_dev
    min_max        offset = -min,  scale = 1 / (max - min)

Statistics are accumulated per column over finite values only. A column with
no finite values keeps the identity transform. A degenerate column (zero
standard deviation or zero range) gets scale 1 when ``clamp_degenerate`` is
True (the default), otherwise the unguarded scale ``inf`` is kept and
propagates into the features.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Optional

import numpy as np
from pydantic import BaseModel, Field

from objfeatures.errors import DimensionMismatchError, FittingError
from objfeatures.preprocessing.samples import as_sample_matrix
from objfeatures.stats.running import RunningStatistics
from objfeatures.utils.logging import get_logger

logger = get_logger(__name__)


class Normalization(str, Enum):
    """Feature normalization mode."""

    NONE = "none"
    MEAN_VARIANCE = "mean_variance"
    MIN_MAX = "min_max"


class NormalizerState(BaseModel):
    """Persisted form of a Normalizer."""

    offsets: list[float]
    scales: list[float]
    missing_value: Optional[float] = Field(
        default=None, description="Substitute for non-finite inputs; null means none"
    )


def _frozen(values, name: str) -> np.ndarray:
    arr = np.array(values, dtype=np.float64, copy=True)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


class Normalizer:
    """Immutable per-feature affine transform plus missing-value substitute.

    Parameters
    ----------
    offsets : array-like, shape (F,)
        Added to each raw value.
    scales : array-like, shape (F,)
        Multiplied after the offset.
    missing_value : float
        Substitute for non-finite raw values. NaN means no substitution.
    """

    def __init__(self, offsets, scales, missing_value: float = math.nan):
        self._offsets = _frozen(offsets, "offsets")
        self._scales = _frozen(scales, "scales")
        if self._offsets.shape != self._scales.shape:
            raise ValueError(
                f"offsets and scales differ in length: "
                f"{self._offsets.shape[0]} vs {self._scales.shape[0]}"
            )
        self._missing_value = float(missing_value)

    @classmethod
    def identity(cls, n_features: int, missing_value: float = math.nan) -> "Normalizer":
        return cls(np.zeros(n_features), np.ones(n_features), missing_value)

    @property
    def n_features(self) -> int:
        return self._offsets.shape[0]

    @property
    def offsets(self) -> np.ndarray:
        return self._offsets

    @property
    def scales(self) -> np.ndarray:
        return self._scales

    @property
    def missing_value(self) -> float:
        return self._missing_value

    @property
    def has_missing_value(self) -> bool:
        return math.isfinite(self._missing_value)

    @property
    def is_identity(self) -> bool:
        return bool(np.all(self._offsets == 0.0) and np.all(self._scales == 1.0))

    def normalize_feature(self, index: int, value: float) -> float:
        """Normalize one value of feature ``index``."""
        value = float(value)
        if not math.isfinite(value) and self.has_missing_value:
            value = self._missing_value
        return (value + self._offsets[index]) * self._scales[index]

    def normalize(self, values) -> np.ndarray:
        """Normalize a ``(rows, F)`` array, returning a new float64 array.

        Element-for-element identical to ``normalize_feature``.
        """
        arr = np.asarray(values, dtype=np.float64)
        if arr.shape[-1] != self.n_features:
            raise DimensionMismatchError("Normalizer input", self.n_features, arr.shape[-1])
        if self.has_missing_value:
            arr = np.where(np.isfinite(arr), arr, self._missing_value)
        return (arr + self._offsets) * self._scales

    def to_dict(self) -> dict[str, Any]:
        return NormalizerState(
            offsets=self._offsets.tolist(),
            scales=self._scales.tolist(),
            missing_value=self._missing_value if not math.isnan(self._missing_value) else None,
        ).model_dump()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Normalizer":
        state = NormalizerState.model_validate(data)
        missing = math.nan if state.missing_value is None else state.missing_value
        return cls(state.offsets, state.scales, missing)

    def __repr__(self) -> str:
        return f"Normalizer(n_features={self.n_features}, missing_value={self._missing_value})"


def create_normalizer(
    normalization: Normalization | str,
    samples,
    missing_value: float = math.nan,
    clamp_degenerate: bool = True,
) -> Normalizer:
    """Fit a Normalizer from a sample matrix.

    Parameters
    ----------
    normalization : Normalization or str
        Mode: 'none', 'mean_variance' or 'min_max'.
    samples : array-like, shape (n_samples, n_features)
        Training samples. A 3-D multi-channel source is flattened so channels
        become feature columns.
    missing_value : float
        Substitute for non-finite inputs at normalization time. NaN = none.
    clamp_degenerate : bool
        Use scale 1 for zero-variance / zero-range columns instead of inf.

    Returns
    -------
    Normalizer
    """
    try:
        mode = Normalization(normalization)
    except ValueError:
        raise FittingError(
            f"Unknown normalization: {normalization!r}. "
            f"Available: {[m.value for m in Normalization]}"
        ) from None

    matrix = as_sample_matrix(samples)
    n_samples, n_features = matrix.shape
    if n_features == 0:
        raise FittingError("Cannot fit a normalizer with zero features")

    offsets = np.zeros(n_features)
    scales = np.ones(n_features)

    if mode is not Normalization.NONE:
        for col in range(n_features):
            stats = RunningStatistics()
            stats.add_values(matrix[:, col])
            if stats.is_empty:
                logger.warning("fit_normalizer | column=%d has no finite values; left unscaled", col)
                continue
            if mode is Normalization.MEAN_VARIANCE:
                offsets[col] = -stats.mean
                spread = stats.std_dev
            else:
                offsets[col] = -stats.min
                spread = stats.range
            if spread > 0:
                scales[col] = 1.0 / spread
            elif clamp_degenerate:
                logger.warning("fit_normalizer | column=%d is constant; scale clamped to 1", col)
            else:
                logger.warning("fit_normalizer | column=%d is constant; scale is inf", col)
                scales[col] = math.inf

    logger.info(
        "fit_normalizer | mode=%s n_samples=%d n_features=%d missing_value=%s",
        mode.value,
        n_samples,
        n_features,
        missing_value,
    )
    return Normalizer(offsets, scales, missing_value)


def normalize(samples: np.ndarray, normalizer: Normalizer) -> np.ndarray:
    """Normalize a float sample matrix in place and return it."""
    if not isinstance(samples, np.ndarray) or not np.issubdtype(samples.dtype, np.floating):
        raise ValueError("normalize() needs a floating-point numpy array to write into")
    samples[...] = normalizer.normalize(samples)
    return samples
