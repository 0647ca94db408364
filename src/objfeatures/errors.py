"""
Exception Types
===============

Configuration-level failures raised by fitting and chain construction.

Missing measurements are deliberately absent from this module: they are
ordinary data variance, reported as NaN features and through
``FeatureExtractor.get_missing_features`` rather than raised.
"""

from __future__ import annotations


class ObjFeaturesError(Exception):
    """Base class for all objfeatures errors."""


class FittingError(ObjFeaturesError, ValueError):
    """A Normalizer or PCAProjector could not be fitted from the given samples."""


class DimensionMismatchError(ObjFeaturesError, ValueError):
    """A fitted component was combined with data of a different width."""

    def __init__(self, what: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"{what}: expected {expected} features, got {actual}")
