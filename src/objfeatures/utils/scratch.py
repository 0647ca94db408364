"""
Scoped Scratch Matrices
=======================

Transient matrices used while fitting a PCA projection or while a
PCA-projecting extractor runs its inner extractor.

A scratch matrix is acquired immediately before use and released when its
``with`` block exits, whether normally or through an exception. After release
the matrix refuses access, so nothing can hold on to it past the call that
created it.

Usage::

    with scratch_matrix(n_objects, n_features) as scratch:
        inner.extract_features(context, objects, FeatureBuffer(scratch.flat))
        projected = projector.project(scratch.data)
"""

from __future__ import annotations

import threading
from typing import Optional

import numpy as np

_lock = threading.Lock()
_live = 0


def live_scratch_count() -> int:
    """Number of scratch matrices currently acquired and not yet released."""
    with _lock:
        return _live


class ScratchMatrix:
    """A row-major ``(rows, cols)`` matrix with an explicit release.

    Parameters
    ----------
    rows, cols : int
        Matrix shape.
    dtype : numpy dtype
        Element type, float32 by default to match feature buffers.
    """

    def __init__(self, rows: int, cols: int, dtype=np.float32):
        global _live
        if rows < 0 or cols < 0:
            raise ValueError(f"Invalid scratch shape: ({rows}, {cols})")
        self._data: Optional[np.ndarray] = np.zeros((rows, cols), dtype=dtype)
        with _lock:
            _live += 1

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> np.ndarray:
        """The matrix itself, shape (rows, cols)."""
        if self._data is None:
            raise RuntimeError("Scratch matrix has already been released")
        return self._data

    @property
    def flat(self) -> np.ndarray:
        """A 1-D view over the matrix in row-major order."""
        return self.data.reshape(-1)

    def release(self) -> None:
        """Drop the matrix. Idempotent."""
        global _live
        if self._data is None:
            return
        self._data = None
        with _lock:
            _live -= 1

    def __enter__(self) -> "ScratchMatrix":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def scratch_matrix(rows: int, cols: int, dtype=np.float32) -> ScratchMatrix:
    """Acquire a scratch matrix for use in a ``with`` block."""
    return ScratchMatrix(rows, cols, dtype=dtype)
