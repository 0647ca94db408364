"""Tests for Normalizer fitting and application (preprocessing/normalization.py)."""

from __future__ import annotations

import math

import numpy as np
import pytest

from objfeatures.errors import DimensionMismatchError, FittingError
from objfeatures.preprocessing.normalization import (
    Normalization,
    Normalizer,
    create_normalizer,
    normalize,
)


class TestNormalizer:
    def test_identity_is_exact(self, rng):
        samples = rng.standard_normal((20, 3)) * 100
        normalizer = create_normalizer(Normalization.NONE, samples)
        assert normalizer.is_identity
        for i in range(3):
            for v in samples[:, i]:
                assert normalizer.normalize_feature(i, v) == v

    def test_missing_value_substituted(self):
        normalizer = Normalizer([-1.0], [2.0], missing_value=0.0)
        assert normalizer.normalize_feature(0, math.nan) == -2.0
        assert normalizer.normalize_feature(0, math.inf) == -2.0

    def test_non_finite_propagates_without_substitute(self):
        normalizer = Normalizer([-1.0], [2.0])
        assert math.isnan(normalizer.normalize_feature(0, math.nan))

    def test_vectorised_matches_scalar(self, rng):
        samples = rng.standard_normal((15, 4))
        samples[3, 2] = np.nan
        normalizer = create_normalizer("mean_variance", samples, missing_value=0.0)
        out = normalizer.normalize(samples)
        for r in range(15):
            for c in range(4):
                assert out[r, c] == normalizer.normalize_feature(c, samples[r, c])

    def test_arrays_read_only(self):
        normalizer = Normalizer([0.0, 1.0], [1.0, 2.0])
        with pytest.raises(ValueError):
            normalizer.offsets[0] = 5.0

    def test_width_mismatch(self):
        normalizer = Normalizer.identity(3)
        with pytest.raises(DimensionMismatchError):
            normalizer.normalize(np.zeros((2, 4)))

    def test_mismatched_offsets_scales(self):
        with pytest.raises(ValueError, match="differ"):
            Normalizer([0.0, 0.0], [1.0])


class TestCreateNormalizer:
    def test_mean_variance_properties(self, rng):
        samples = rng.standard_normal((200, 3)) * [1.0, 10.0, 0.1] + [5.0, -3.0, 100.0]
        normalizer = create_normalizer(Normalization.MEAN_VARIANCE, samples)
        out = normalizer.normalize(samples)
        np.testing.assert_allclose(out.mean(axis=0), 0.0, atol=1e-10)
        np.testing.assert_allclose(out.std(axis=0, ddof=1), 1.0, rtol=1e-10)

    def test_min_max_properties(self, rng):
        samples = rng.uniform(-50, 50, size=(100, 4))
        normalizer = create_normalizer(Normalization.MIN_MAX, samples)
        out = normalizer.normalize(samples)
        assert out.min() >= -1e-12
        assert out.max() <= 1 + 1e-12
        np.testing.assert_allclose(out.min(axis=0), 0.0, atol=1e-12)
        np.testing.assert_allclose(out.max(axis=0), 1.0, atol=1e-12)

    def test_non_finite_values_ignored_when_fitting(self):
        samples = np.array([[1.0], [np.nan], [3.0], [np.inf]])
        normalizer = create_normalizer(Normalization.MEAN_VARIANCE, samples)
        assert normalizer.offsets[0] == -2.0
        assert normalizer.scales[0] == pytest.approx(1.0 / math.sqrt(2.0))

    def test_empty_column_left_unscaled(self):
        samples = np.array([[1.0, np.nan], [2.0, np.nan]])
        normalizer = create_normalizer(Normalization.MIN_MAX, samples)
        assert normalizer.offsets[1] == 0.0
        assert normalizer.scales[1] == 1.0

    def test_constant_column_clamped(self):
        samples = np.array([[4.0, 1.0], [4.0, 2.0], [4.0, 3.0]])
        normalizer = create_normalizer(Normalization.MEAN_VARIANCE, samples)
        assert normalizer.offsets[0] == -4.0
        assert normalizer.scales[0] == 1.0

    def test_constant_column_unclamped_is_infinite(self):
        samples = np.array([[4.0], [4.0]])
        normalizer = create_normalizer(Normalization.MIN_MAX, samples, clamp_degenerate=False)
        assert math.isinf(normalizer.scales[0])

    def test_multichannel_source_reshaped(self, rng):
        samples = rng.standard_normal((10, 2, 3))
        normalizer = create_normalizer(Normalization.MEAN_VARIANCE, samples)
        assert normalizer.n_features == 6
        np.testing.assert_allclose(
            normalizer.offsets, -samples.reshape(10, 6).mean(axis=0), rtol=1e-12
        )

    def test_unknown_mode(self):
        with pytest.raises(FittingError, match="Unknown normalization"):
            create_normalizer("zscore", np.zeros((2, 2)))

    def test_normalize_in_place(self):
        samples = np.array([[10.0, 4.0], [20.0, 6.0], [30.0, 8.0]], dtype=np.float32)
        normalizer = create_normalizer(Normalization.MEAN_VARIANCE, samples)
        result = normalize(samples, normalizer)
        assert result is samples
        np.testing.assert_allclose(samples[:, 0], [-1.0, 0.0, 1.0], atol=1e-6)

    def test_state_round_trip(self):
        normalizer = Normalizer([-1.5, 0.25], [2.0, math.inf], missing_value=0.0)
        restored = Normalizer.from_dict(normalizer.to_dict())
        np.testing.assert_array_equal(restored.offsets, normalizer.offsets)
        np.testing.assert_array_equal(restored.scales, normalizer.scales)
        assert restored.missing_value == 0.0

    def test_nan_missing_value_persisted_as_null(self):
        state = Normalizer.identity(2).to_dict()
        assert state["missing_value"] is None
        assert math.isnan(Normalizer.from_dict(state).missing_value)
