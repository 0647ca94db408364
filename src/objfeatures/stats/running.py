"""
Running Statistics
==================

Streaming count / mean / variance / min / max for one feature column.

Core Algorithm (Welford)::

    n     += 1
    delta  = x - mean
    mean  += delta / n
    m2    += delta * (x - mean)
    variance = m2 / (n - 1)

Non-finite values (NaN, +/-inf) are skipped and not counted, so a column with
missing measurements still yields statistics over the values it does have.
"""

from __future__ import annotations

import math
from typing import Iterable


class RunningStatistics:
    """Incremental statistics accumulator."""

    def __init__(self):
        self._size = 0
        self._sum = 0.0
        self._mean = 0.0
        self._m2 = 0.0
        self._min = math.inf
        self._max = -math.inf

    def add_value(self, value: float) -> None:
        """Add one value; non-finite values are ignored."""
        value = float(value)
        if not math.isfinite(value):
            return
        self._size += 1
        self._sum += value
        delta = value - self._mean
        self._mean += delta / self._size
        self._m2 += delta * (value - self._mean)
        if value < self._min:
            self._min = value
        if value > self._max:
            self._max = value

    def add_values(self, values: Iterable[float]) -> None:
        for value in values:
            self.add_value(value)

    @property
    def size(self) -> int:
        """Number of finite values added."""
        return self._size

    @property
    def is_empty(self) -> bool:
        return self._size == 0

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def mean(self) -> float:
        return self._mean if self._size > 0 else math.nan

    @property
    def variance(self) -> float:
        """Sample variance (divisor n - 1); 0 for one value, NaN for none."""
        if self._size == 0:
            return math.nan
        if self._size == 1:
            return 0.0
        return self._m2 / (self._size - 1)

    @property
    def std_dev(self) -> float:
        return math.sqrt(self.variance)

    @property
    def min(self) -> float:
        return self._min if self._size > 0 else math.nan

    @property
    def max(self) -> float:
        return self._max if self._size > 0 else math.nan

    @property
    def range(self) -> float:
        return self.max - self.min

    def __repr__(self) -> str:
        return (
            f"RunningStatistics(size={self._size}, mean={self.mean:.6g}, "
            f"std_dev={self.std_dev:.6g}, min={self.min:.6g}, max={self.max:.6g})"
        )
