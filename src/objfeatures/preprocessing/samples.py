"""Sample-matrix coercion shared by the fitting routines."""

from __future__ import annotations

import numpy as np


def as_sample_matrix(samples) -> np.ndarray:
    """Return ``samples`` as a 2-D float64 ``(n_samples, n_features)`` matrix.

    A 3-D multi-channel source ``(n_samples, n_cols, n_channels)`` is reshaped
    so that channels become feature columns: ``(n_samples, n_cols * n_channels)``.
    """
    matrix = np.asarray(samples, dtype=np.float64)
    if matrix.ndim == 3:
        matrix = matrix.reshape(matrix.shape[0], -1)
    elif matrix.ndim == 1:
        matrix = matrix.reshape(-1, 1)
    elif matrix.ndim != 2:
        raise ValueError(f"Expected a 2-D sample matrix, got shape {matrix.shape}")
    return matrix
