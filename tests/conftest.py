"""Shared pytest fixtures for objfeatures tests."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from objfeatures.objects import DetectedObject
from objfeatures.utils import logging as objfeatures_logging


@pytest.fixture(autouse=True)
def _restore_package_logger(monkeypatch):
    """Undo configure_logging() calls made by a test (e.g. through the CLI)."""
    pkg_logger = logging.getLogger(objfeatures_logging.PACKAGE_LOGGER)
    handlers = list(pkg_logger.handlers)
    level, propagate = pkg_logger.level, pkg_logger.propagate
    monkeypatch.setattr(objfeatures_logging, "_console_handler", objfeatures_logging._console_handler)
    monkeypatch.setattr(objfeatures_logging, "_file_handler", objfeatures_logging._file_handler)
    yield
    for handler in pkg_logger.handlers:
        if handler not in handlers:
            pkg_logger.removeHandler(handler)
            handler.close()
    pkg_logger.setLevel(level)
    pkg_logger.propagate = propagate


@pytest.fixture()
def rng():
    """Deterministic random generator."""
    return np.random.default_rng(42)


@pytest.fixture()
def area_perimeter_objects():
    """Three objects with area/perimeter raw values [[10,4],[20,6],[30,8]]."""
    return [
        DetectedObject({"area": 10.0, "perimeter": 4.0}, name="a"),
        DetectedObject({"area": 20.0, "perimeter": 6.0}, name="b"),
        DetectedObject({"area": 30.0, "perimeter": 8.0}, name="c"),
    ]


@pytest.fixture()
def random_objects(rng):
    """Factory for objects with correlated random measurements."""

    def _make(n_objects: int = 60, n_features: int = 5):
        latent = rng.standard_normal((n_objects, 2))
        mixing = rng.standard_normal((2, n_features))
        values = latent @ mixing * 10 + rng.standard_normal((n_objects, n_features)) + 50
        names = [f"m{j}" for j in range(n_features)]
        objects = [
            DetectedObject(dict(zip(names, row)), name=f"obj{i}")
            for i, row in enumerate(values)
        ]
        return objects, names, values

    return _make
