"""
Artifact Persistence
====================

Saves and loads extractor chains as JSON files.

Design Principles:
    - JSON for the chain and its provenance (human-readable, git-diffable)
    - The chain document is the tagged form from ``extractors.registry``
    - Derived state (e.g. PCA whitening denominators) is never written

File Layout::

    {
      "extractor":  { "type": "...", ... },
      "provenance": { "timestamp": "...", "objfeatures_version": "...", ... }
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from objfeatures.extractors.base import FeatureExtractor
from objfeatures.extractors.registry import extractor_from_dict, extractor_to_dict
from objfeatures.utils.logging import get_logger

logger = get_logger(__name__)


def save_extractor(
    path: Path,
    extractor: FeatureExtractor,
    provenance: Optional[dict] = None,
) -> Path:
    """Save an extractor chain to a JSON file.

    Parameters
    ----------
    path : Path
        Destination file. Parent directories are created.
    extractor : FeatureExtractor
        Chain to save.
    provenance : dict or None
        Provenance metadata stored alongside the chain.

    Returns
    -------
    Path
        Path to the saved file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    document = {
        "extractor": extractor_to_dict(extractor),
        "provenance": provenance or {},
    }
    with open(path, "w") as f:
        json.dump(document, f, indent=2)

    logger.info(
        "Saved extractor | n_features=%d type=%s path=%s",
        extractor.n_features,
        document["extractor"]["type"],
        path,
    )
    return path


def load_extractor(path: Path) -> FeatureExtractor:
    """Load an extractor chain saved with ``save_extractor``."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Extractor file not found: {path}")

    with open(path) as f:
        document = json.load(f)
    if "extractor" not in document:
        raise ValueError(f"No 'extractor' section in {path}")

    extractor = extractor_from_dict(document["extractor"])
    logger.info("Loaded extractor | n_features=%d path=%s", extractor.n_features, path)
    return extractor


def load_provenance(path: Path) -> dict:
    """Read only the provenance block of a saved extractor file."""
    with open(Path(path)) as f:
        return json.load(f).get("provenance", {})
