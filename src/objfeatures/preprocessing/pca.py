"""
PCA Projection
==============

Principal-component projection fitted under a retained-variance target.

Core Algorithm::

    1. mean = column means of the samples
    2. eigenvectors / eigenvalues of the covariance of the centred samples,
       sorted by descending eigenvalue (scikit-learn PCA, full SVD)
    3. k = smallest prefix with cumsum(eigenvalues)[k-1] >= r * sum(eigenvalues)
    4. y = (x - mean) @ V[:k].T
    5. whiten: y[:, j] /= sqrt(eigenvalues[j] + 1e-5)

Design Principles:
    - Double precision throughout; callers cast to float32 buffers afterwards
    - Eigenvalues are the unbiased explained variances (divisor n - 1)
    - Whitening denominators are computed in the constructor, so a fitted
      projector and one restored from disk are identical and the shared,
      read-only projector has no lazily-initialised state
    - Fitting copies the samples into a scoped scratch matrix that is released
      before the function returns, on success or failure
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np
from pydantic import BaseModel
from sklearn.decomposition import PCA

from objfeatures.errors import DimensionMismatchError, FittingError
from objfeatures.preprocessing.samples import as_sample_matrix
from objfeatures.utils.logging import get_logger
from objfeatures.utils.scratch import scratch_matrix

logger = get_logger(__name__)

WHITEN_EPSILON = 1e-5


class PCAProjectorState(BaseModel):
    """Persisted form of a PCAProjector (the whitening cache is derived)."""

    mean: list[float]
    eigenvectors: list[list[float]]
    eigenvalues: list[float]
    whiten: bool = False


def _frozen(values, ndim: int, name: str) -> np.ndarray:
    arr = np.array(values, dtype=np.float64, copy=True)
    if arr.ndim != ndim:
        raise ValueError(f"{name} must be {ndim}-D, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


class PCAProjector:
    """Immutable PCA projection.

    Parameters
    ----------
    mean : array-like, shape (D,)
        Column means of the fitting samples.
    eigenvectors : array-like, shape (k, D)
        Orthonormal component rows, by descending eigenvalue.
    eigenvalues : array-like, shape (k,)
        Variance along each component.
    whiten : bool
        Scale each projected component to unit variance.
    """

    def __init__(self, mean, eigenvectors, eigenvalues, whiten: bool = False):
        self._mean = _frozen(mean, 1, "mean")
        self._eigenvectors = _frozen(eigenvectors, 2, "eigenvectors")
        self._eigenvalues = _frozen(eigenvalues, 1, "eigenvalues")
        self._whiten = bool(whiten)

        k, d = self._eigenvectors.shape
        if k == 0:
            raise ValueError("A PCA projector needs at least one component")
        if d != self._mean.shape[0]:
            raise DimensionMismatchError("PCA eigenvectors", self._mean.shape[0], d)
        if self._eigenvalues.shape[0] != k:
            raise ValueError(f"Expected {k} eigenvalues, got {self._eigenvalues.shape[0]}")

        self._sqrt_eigenvalues = np.sqrt(self._eigenvalues + WHITEN_EPSILON)
        self._sqrt_eigenvalues.setflags(write=False)

    @property
    def n_components(self) -> int:
        return self._eigenvectors.shape[0]

    @property
    def n_input_features(self) -> int:
        return self._mean.shape[0]

    @property
    def mean(self) -> np.ndarray:
        return self._mean

    @property
    def eigenvectors(self) -> np.ndarray:
        return self._eigenvectors

    @property
    def eigenvalues(self) -> np.ndarray:
        return self._eigenvalues

    @property
    def whiten(self) -> bool:
        return self._whiten

    @property
    def sqrt_eigenvalues(self) -> np.ndarray:
        """Whitening denominators ``sqrt(eigenvalues + 1e-5)``."""
        return self._sqrt_eigenvalues

    def project(self, samples, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Project samples onto the retained components.

        Parameters
        ----------
        samples : array-like, shape (N, D)
            Input samples.
        out : np.ndarray or None, shape (N, k)
            Optional destination; the result is cast to its dtype.

        Returns
        -------
        np.ndarray, shape (N, k)
            ``out`` if given, otherwise a new float64 array.
        """
        arr = np.asarray(samples, dtype=np.float64)
        if arr.ndim == 1:
            arr = arr.reshape(1, -1)
        if arr.ndim != 2 or arr.shape[1] != self.n_input_features:
            raise DimensionMismatchError(
                "PCA projection input", self.n_input_features, arr.shape[-1]
            )

        projected = (arr - self._mean) @ self._eigenvectors.T
        if self._whiten:
            projected /= self._sqrt_eigenvalues

        if out is None:
            return projected
        if out.shape != projected.shape:
            raise ValueError(f"Output shape {out.shape} does not match {projected.shape}")
        out[...] = projected
        return out

    def to_dict(self) -> dict[str, Any]:
        return PCAProjectorState(
            mean=self._mean.tolist(),
            eigenvectors=self._eigenvectors.tolist(),
            eigenvalues=self._eigenvalues.tolist(),
            whiten=self._whiten,
        ).model_dump()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PCAProjector":
        state = PCAProjectorState.model_validate(data)
        return cls(state.mean, state.eigenvectors, state.eigenvalues, state.whiten)

    def __repr__(self) -> str:
        return (
            f"PCAProjector(n_input_features={self.n_input_features}, "
            f"n_components={self.n_components}, whiten={self._whiten})"
        )


def select_n_components(eigenvalues: np.ndarray, retained_variance: float) -> int:
    """Smallest k whose leading eigenvalues reach ``retained_variance`` of the total."""
    cumulative = np.cumsum(eigenvalues)
    k = int(np.searchsorted(cumulative, retained_variance * cumulative[-1], side="left")) + 1
    return min(max(k, 1), len(eigenvalues))


def create_pca_projector(
    samples,
    retained_variance: float,
    whiten: bool = False,
) -> PCAProjector:
    """Fit a PCAProjector keeping enough components for ``retained_variance``.

    Parameters
    ----------
    samples : array-like, shape (n_samples, D)
        Training samples; must be finite (normalize with a missing value first).
    retained_variance : float
        Target fraction of total variance, in (0, 1].
    whiten : bool
        Whether projections are whitened.

    Returns
    -------
    PCAProjector

    Raises
    ------
    FittingError
        On an invalid target, too few samples, non-finite samples, zero total
        variance or a failed decomposition.

    Notes
    -----
    Rank-deficient samples (linearly dependent columns) are accepted as long
    as the total variance is non-zero. The null directions get eigenvalues of
    (numerically) zero, fall at the end of the ordering, and are only kept
    when ``retained_variance`` requires them.
    """
    if not 0.0 < retained_variance <= 1.0:
        raise FittingError(f"Retained variance must be in (0, 1], got {retained_variance}")

    matrix = as_sample_matrix(samples)
    n_samples, n_features = matrix.shape
    if n_features == 0:
        raise FittingError("Cannot fit PCA with zero features")
    if n_samples < 2:
        raise FittingError(f"PCA needs at least 2 samples, got {n_samples}")
    if n_samples < n_features:
        raise FittingError(
            f"PCA needs at least as many samples as features "
            f"(n_samples={n_samples}, n_features={n_features})"
        )
    if not np.all(np.isfinite(matrix)):
        raise FittingError("PCA samples contain non-finite values")

    with scratch_matrix(n_samples, n_features, dtype=np.float64) as scratch:
        scratch.data[...] = matrix
        pca = PCA(svd_solver="full")
        try:
            pca.fit(scratch.data)
        except (np.linalg.LinAlgError, ValueError) as e:
            raise FittingError(f"PCA decomposition failed: {e}") from e
        mean = pca.mean_.copy()
        eigenvectors = pca.components_.copy()
        eigenvalues = pca.explained_variance_.copy()

    total = float(np.sum(eigenvalues))
    if not np.isfinite(total) or total <= 0:
        raise FittingError("PCA samples have zero total variance")

    k = select_n_components(eigenvalues, retained_variance)
    retained = float(np.sum(eigenvalues[:k]) / total)
    logger.info(
        "fit_pca | n_samples=%d n_features=%d n_components=%d retained=%.4f whiten=%s",
        n_samples,
        n_features,
        k,
        retained,
        whiten,
    )
    return PCAProjector(mean, eigenvectors[:k], eigenvalues[:k], whiten=whiten)
