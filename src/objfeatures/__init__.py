"""
objfeatures
===========

Feature preparation for object classification: turns detected objects that
carry named scalar measurements into dense float32 feature vectors, with
optional normalization and PCA projection.

Design Principles:
    - Composable: extractors are decorators around one measurement extractor
    - Fit once, share freely: Normalizer and PCAProjector are immutable
    - Persistable: any extractor chain round-trips through a tagged JSON document
    - Tolerant extraction: missing measurements become NaN, never exceptions

Package Layout::

    cli/            Typer CLI commands (fit, extract, describe)
    extractors/     FeatureExtractor interface, decorators, persistence registry
    io/             Extractor artifact save/load with provenance
    preprocessing/  Normalizer and PCAProjector fitting
    stats/          Streaming per-column statistics
    utils/          Logging, scoped scratch matrices
"""

__version__ = "0.1.0"
