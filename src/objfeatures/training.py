"""
Training Feature Preparation
============================

Turns a base extractor and a set of training objects into the final
extractor chain and the matching training matrix for a classifier.

Core Algorithm::

    1. X = extractor features for all training objects, shape (N, F)
    2. Unless the classifier copes with NaN, no normalization is requested
       and no PCA is requested: fit a Normalizer on X, normalize X in place,
       wrap the extractor in a NormalizingExtractor
    3. If PCA is requested: fit a PCAProjector on X, project X,
       wrap the extractor in a PCAProjectingExtractor

The missing-value substitute is NaN only when the classifier supports missing
values and PCA is off; otherwise 0, since PCA cannot handle NaN and most
classifiers cannot either. The substitute is applied to the raw value, before
the affine transform.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Collection, Optional, Sequence

import numpy as np

from objfeatures.errors import DimensionMismatchError, FittingError
from objfeatures.extractors.base import FeatureExtractor
from objfeatures.extractors.normalizing import NormalizingExtractor
from objfeatures.extractors.pca_projecting import PCAProjectingExtractor
from objfeatures.objects import MeasurementObject
from objfeatures.preprocessing.normalization import Normalization, create_normalizer, normalize
from objfeatures.preprocessing.pca import create_pca_projector
from objfeatures.utils.logging import get_logger, log

logger = get_logger(__name__)


@dataclass
class TrainingFeatures:
    """Result of ``prepare_training_features``.

    Attributes
    ----------
    extractor : FeatureExtractor
        Final chain to use when classifying new objects.
    features : np.ndarray, shape (N, extractor.n_features)
        Training matrix, float32, already normalized / projected.
    """

    extractor: FeatureExtractor
    features: np.ndarray


def prepare_training_features(
    extractor: FeatureExtractor,
    context: Any,
    objects: Collection[MeasurementObject],
    normalization: Normalization | str = Normalization.NONE,
    pca_retained_variance: Optional[float] = None,
    supports_missing_values: bool = False,
    whiten: bool = True,
    missing_value: Optional[float] = None,
    clamp_degenerate: bool = True,
) -> TrainingFeatures:
    """Extract training features and fit the preprocessing chain.

    Parameters
    ----------
    extractor : FeatureExtractor
        Base extractor (usually a MeasurementListExtractor).
    context : Any
        Image context passed to the extractor.
    objects : collection of MeasurementObject
        Training objects.
    normalization : Normalization or str
        Normalization mode.
    pca_retained_variance : float or None
        Retained-variance target in (0, 1]; None disables PCA.
    supports_missing_values : bool
        Whether the classifier accepts NaN features.
    whiten : bool
        Whiten PCA components.
    missing_value : float or None
        Explicit substitute; None picks NaN or 0 as described above.
    clamp_degenerate : bool
        Passed to ``create_normalizer``.

    Returns
    -------
    TrainingFeatures

    Raises
    ------
    FittingError
        If there are no training objects, or normalizer / PCA fitting fails.
    """
    objects = list(objects)
    if not objects:
        raise FittingError("No training objects: cannot prepare features")

    normalization = Normalization(normalization)
    use_pca = pca_retained_variance is not None

    features = extractor.extract_matrix(context, objects)
    n_nan = int(np.count_nonzero(~np.isfinite(features)))
    if n_nan > 0:
        logger.debug("training_features | non-finite values in training set: %d", n_nan)

    if not (supports_missing_values and normalization is Normalization.NONE and not use_pca):
        if missing_value is None:
            missing_value = math.nan if supports_missing_values and not use_pca else 0.0
        normalizer = create_normalizer(
            normalization, features, missing_value=missing_value, clamp_degenerate=clamp_degenerate
        )
        normalize(features, normalizer)
        extractor = NormalizingExtractor(extractor, normalizer)

    if use_pca:
        projector = create_pca_projector(features, pca_retained_variance, whiten=whiten)
        features = projector.project(features).astype(np.float32)
        extractor = PCAProjectingExtractor(extractor, projector)

    log(
        f"training_features | n_objects={features.shape[0]} n_features={features.shape[1]} "
        f"normalization={normalization.value} pca={pca_retained_variance}",
        severity="metric",
    )
    return TrainingFeatures(extractor=extractor, features=features)


def rank_feature_importance(
    importance: Sequence[float],
    extractor: FeatureExtractor,
) -> list[tuple[str, float]]:
    """Pair per-feature importance scores with feature names, most important first.

    Parameters
    ----------
    importance : sequence of float
        One score per extractor feature (e.g. random-forest variable importance).
    extractor : FeatureExtractor
        Chain the classifier was trained with.

    Returns
    -------
    list of (name, score)
    """
    scores = np.asarray(importance, dtype=np.float64).reshape(-1)
    names = extractor.feature_names[: extractor.n_features]
    if scores.shape[0] != len(names):
        raise DimensionMismatchError("Feature importance", len(names), scores.shape[0])

    order = np.argsort(-scores, kind="stable")
    ranked = [(names[i], float(scores[i])) for i in order]

    lines = "\n".join(f"{score:.4f} \t {name}" for name, score in ranked)
    logger.info("Variable importance:\n%s", lines)
    return ranked
