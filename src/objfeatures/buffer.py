"""
Feature Buffer
==============

Flat float32 storage with a write cursor, the destination of every
``FeatureExtractor.extract_features`` call.

The caller owns the buffer; an extractor borrows it for one call and appends
``n_objects * n_features`` values starting at ``position``, object-major and
feature-minor. Several calls can write consecutive blocks into one buffer,
which is how training matrices for multiple classes are assembled.
"""

from __future__ import annotations

import numpy as np


class FeatureBuffer:
    """Float32 array plus write cursor.

    Parameters
    ----------
    data : np.ndarray
        1-D float32 array to write into. Wrapped without copying, so writes
        are visible through the caller's array.
    position : int
        Initial write cursor.
    """

    def __init__(self, data: np.ndarray, position: int = 0):
        if not isinstance(data, np.ndarray) or data.ndim != 1:
            raise ValueError("FeatureBuffer requires a 1-D numpy array")
        if data.dtype != np.float32:
            raise ValueError(f"FeatureBuffer requires float32 storage, got {data.dtype}")
        if not 0 <= position <= data.shape[0]:
            raise ValueError(f"Position {position} outside buffer of capacity {data.shape[0]}")
        self._data = data
        self._position = position

    @classmethod
    def allocate(cls, capacity: int) -> "FeatureBuffer":
        """Create a zero-filled buffer of the given capacity."""
        return cls(np.zeros(capacity, dtype=np.float32))

    @property
    def array(self) -> np.ndarray:
        return self._data

    @property
    def capacity(self) -> int:
        return self._data.shape[0]

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        return self.capacity - self._position

    def _ensure_room(self, n: int) -> None:
        if n > self.remaining:
            raise BufferError(
                f"Cannot write {n} values at position {self._position}: "
                f"only {self.remaining} of {self.capacity} remaining"
            )

    def put(self, value: float) -> None:
        """Write one value at the cursor and advance it."""
        self._ensure_room(1)
        self._data[self._position] = value
        self._position += 1

    def put_array(self, values) -> None:
        """Write a run of values at the cursor and advance past them."""
        values = np.asarray(values).reshape(-1)
        n = values.shape[0]
        self._ensure_room(n)
        self._data[self._position:self._position + n] = values
        self._position += n

    def get(self, index: int) -> float:
        return float(self._data[index])

    def set(self, index: int, value: float) -> None:
        self._data[index] = value

    def view(self, start: int, stop: int) -> np.ndarray:
        """Writable view over ``[start, stop)``."""
        return self._data[start:stop]

    def __len__(self) -> int:
        return self.capacity

    def __repr__(self) -> str:
        return f"FeatureBuffer(capacity={self.capacity}, position={self._position})"
