"""
Extractor Registry
==================

Tagged persistence for extractor chains. Every node of a persisted chain is a
dict whose ``type`` field selects the class that rebuilds it; wrapped nodes
are nested under ``extractor``.

Design Principles:
    - Maps tag → concrete class explicitly, no reflection on module paths
    - ``extractor_to_dict`` / ``extractor_from_dict`` for raw dict documents
    - ``dumps_extractor`` / ``loads_extractor`` for JSON text
    - ``register_extractor_type()`` allows custom extractors at runtime

Usage::

    from objfeatures.extractors.registry import dumps_extractor, loads_extractor

    text = dumps_extractor(extractor)
    restored = loads_extractor(text)

Document example::

    {"type": "normalizing",
     "extractor": {"type": "measurements", "measurements": ["Area", "Perimeter"]},
     "normalizer": {"offsets": [-20.0, -6.0], "scales": [0.1, 0.5], "missing_value": null}}
"""

from __future__ import annotations

import json
from typing import Any, Optional

from objfeatures.extractors.base import FeatureExtractor
from objfeatures.extractors.measurements import MeasurementListExtractor
from objfeatures.extractors.normalizing import NormalizingExtractor
from objfeatures.extractors.pca_projecting import PCAProjectingExtractor
from objfeatures.utils.logging import get_logger

logger = get_logger(__name__)

_REGISTRY: dict[str, type[FeatureExtractor]] = {
    MeasurementListExtractor.type_tag: MeasurementListExtractor,
    NormalizingExtractor.type_tag: NormalizingExtractor,
    PCAProjectingExtractor.type_tag: PCAProjectingExtractor,
}


def list_extractor_types() -> list[str]:
    """Return all registered extractor type tags."""
    return list(_REGISTRY.keys())


def register_extractor_type(tag: str, cls: type[FeatureExtractor]) -> None:
    """Register a custom extractor class under a type tag.

    Parameters
    ----------
    tag : str
        Value of the ``type`` field in persisted documents.
    cls : type
        ``FeatureExtractor`` subclass implementing ``to_dict`` / ``from_dict``.
    """
    if not (isinstance(cls, type) and issubclass(cls, FeatureExtractor)):
        raise TypeError(f"{cls!r} is not a FeatureExtractor subclass")
    _REGISTRY[tag] = cls
    logger.info("Registered extractor type: %s → %s", tag, cls.__name__)


def extractor_to_dict(extractor: FeatureExtractor) -> dict[str, Any]:
    """Serialize an extractor chain to a tagged dict document."""
    data = extractor.to_dict()
    if data.get("type") not in _REGISTRY:
        raise ValueError(
            f"{type(extractor).__name__} serializes with unregistered type "
            f"{data.get('type')!r}. Register it with register_extractor_type()."
        )
    return data


def extractor_from_dict(data: dict[str, Any]) -> FeatureExtractor:
    """Rebuild an extractor chain from a tagged dict document.

    Raises
    ------
    ValueError
        If a node has no ``type`` or an unregistered one.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Extractor document must be a dict, got {type(data).__name__}")

    tag = data.get("type")
    if tag is None:
        raise ValueError(
            f"Extractor document missing 'type' key. Available: {list_extractor_types()}"
        )
    if tag not in _REGISTRY:
        raise ValueError(
            f"Unknown extractor type: '{tag}'. "
            f"Available: {list_extractor_types()}. "
            f"Register custom types with register_extractor_type()."
        )
    return _REGISTRY[tag].from_dict(data, extractor_from_dict)


def dumps_extractor(extractor: FeatureExtractor, indent: Optional[int] = None) -> str:
    """Serialize an extractor chain to JSON text.

    Non-finite floats use the ``NaN`` / ``Infinity`` tokens Python's json
    module reads back.
    """
    return json.dumps(extractor_to_dict(extractor), indent=indent)


def loads_extractor(text: str) -> FeatureExtractor:
    """Rebuild an extractor chain from JSON text."""
    return extractor_from_dict(json.loads(text))
