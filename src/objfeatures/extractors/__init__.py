"""
Feature Extractors
==================

Composable extraction of per-object feature vectors.

Design Principles:
    - Abstract base class (``FeatureExtractor``) defines the interface
    - ``MeasurementListExtractor`` reads named measurements off each object
    - ``NormalizingExtractor`` and ``PCAProjectingExtractor`` wrap any other
      extractor (composition, not inheritance)
    - Persistence through a ``type``-tagged registry in ``registry``
"""
