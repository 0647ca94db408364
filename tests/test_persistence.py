"""Tests for tagged extractor persistence (extractors/registry.py, io/artifacts.py).

Round-tripping any chain must reproduce identical feature names, feature
count and bit-for-bit extraction output.
"""

from __future__ import annotations

import json
import math

import numpy as np
import pytest

from objfeatures.extractors import registry
from objfeatures.extractors.base import FeatureExtractor
from objfeatures.extractors.measurements import MeasurementListExtractor
from objfeatures.extractors.normalizing import NormalizingExtractor
from objfeatures.extractors.pca_projecting import PCAProjectingExtractor
from objfeatures.extractors.registry import (
    dumps_extractor,
    extractor_from_dict,
    extractor_to_dict,
    list_extractor_types,
    loads_extractor,
    register_extractor_type,
)
from objfeatures.io.artifacts import load_extractor, load_provenance, save_extractor
from objfeatures.objects import DetectedObject
from objfeatures.preprocessing.normalization import Normalization, Normalizer, create_normalizer
from objfeatures.preprocessing.pca import create_pca_projector


@pytest.fixture()
def chains(random_objects):
    """Every chain shape: base, normalized, projected, normalized + projected."""
    objects, names, _ = random_objects(60, 5)
    objects.append(DetectedObject({"m0": 1.0, "m2": 3.0}))  # incomplete object

    base = MeasurementListExtractor(names)
    raw = base.extract_matrix(None, objects)
    normalizer = create_normalizer(Normalization.MEAN_VARIANCE, raw, missing_value=0.0)
    normalized = NormalizingExtractor(base, normalizer)
    norm_matrix = normalized.extract_matrix(None, objects)

    projected_only = PCAProjectingExtractor(
        NormalizingExtractor(base, Normalizer.identity(5, missing_value=0.0)),
        create_pca_projector(np.nan_to_num(raw), 0.8, whiten=False),
    )
    full = PCAProjectingExtractor(
        normalized, create_pca_projector(norm_matrix, 0.95, whiten=True)
    )
    return objects, [base, normalized, projected_only, full]


def _assert_same(a: FeatureExtractor, b: FeatureExtractor, objects) -> None:
    assert a.feature_names == b.feature_names
    assert a.n_features == b.n_features
    out_a = a.extract_matrix(None, objects)
    out_b = b.extract_matrix(None, objects)
    assert out_a.tobytes() == out_b.tobytes()


class TestRegistry:
    def test_list_types(self):
        types = list_extractor_types()
        assert {"measurements", "normalizing", "pca"} <= set(types)

    def test_round_trip_dict(self, chains):
        objects, extractors = chains
        for ext in extractors:
            _assert_same(ext, extractor_from_dict(extractor_to_dict(ext)), objects)

    def test_round_trip_json(self, chains):
        objects, extractors = chains
        for ext in extractors:
            _assert_same(ext, loads_extractor(dumps_extractor(ext)), objects)

    def test_document_layout(self, chains):
        _, extractors = chains
        doc = extractor_to_dict(extractors[-1])
        assert doc["type"] == "pca"
        assert doc["extractor"]["type"] == "normalizing"
        assert doc["extractor"]["extractor"]["type"] == "measurements"
        assert set(doc["projector"]) == {"mean", "eigenvectors", "eigenvalues", "whiten"}
        assert set(doc["extractor"]["normalizer"]) == {"offsets", "scales", "missing_value"}

    def test_legacy_names_survive(self, chains):
        objects, extractors = chains
        full = extractors[-1]
        legacy = PCAProjectingExtractor(full.extractor, full.projector, legacy_component_names=True)
        restored = loads_extractor(dumps_extractor(legacy))
        assert restored.legacy_component_names
        assert len(restored.feature_names) == restored.n_features + 1

    def test_infinite_scale_round_trips(self):
        base = MeasurementListExtractor(["a"])
        ext = NormalizingExtractor(base, Normalizer([-1.0], [math.inf]))
        restored = loads_extractor(dumps_extractor(ext))
        assert math.isinf(restored.normalizer.scales[0])

    def test_missing_type(self):
        with pytest.raises(ValueError, match="missing 'type'"):
            extractor_from_dict({"measurements": ["a"]})

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown extractor type"):
            extractor_from_dict({"type": "nonexistent"})

    def test_register_custom_type(self, monkeypatch):
        class SquaredAreaExtractor(MeasurementListExtractor):
            type_tag = "squared_area"

            def __init__(self):
                super().__init__(["area"])

            def extract_features(self, context, objects, buffer):
                for obj in objects:
                    buffer.put(obj.get_measurement("area") ** 2)

            def to_dict(self):
                return {"type": self.type_tag}

            @classmethod
            def from_dict(cls, data, load_extractor):
                return cls()

        monkeypatch.setattr(registry, "_REGISTRY", dict(registry._REGISTRY))
        register_extractor_type("squared_area", SquaredAreaExtractor)
        assert "squared_area" in list_extractor_types()

        ext = NormalizingExtractor(SquaredAreaExtractor(), Normalizer([0.0], [0.5]))
        restored = loads_extractor(dumps_extractor(ext))
        out = restored.extract_matrix(None, [DetectedObject({"area": 4.0})])
        np.testing.assert_array_equal(out, [[8.0]])

    def test_register_rejects_non_extractor(self):
        with pytest.raises(TypeError):
            register_extractor_type("bad", dict)
        assert "bad" not in list_extractor_types()

    def test_builtin_types_only(self):
        assert sorted(list_extractor_types()) == ["measurements", "normalizing", "pca"]


class TestArtifacts:
    def test_save_load(self, tmp_path, chains):
        objects, extractors = chains
        path = save_extractor(tmp_path / "models" / "chain.json", extractors[-1], {"note": "test"})
        restored = load_extractor(path)
        _assert_same(extractors[-1], restored, objects)
        assert load_provenance(path) == {"note": "test"}

    def test_whitening_cache_not_written(self, tmp_path, chains):
        _, extractors = chains
        path = save_extractor(tmp_path / "chain.json", extractors[-1])
        text = path.read_text()
        assert "sqrt" not in text
        assert json.loads(text)["extractor"]["projector"]["whiten"] is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_extractor(tmp_path / "nope.json")

    def test_no_extractor_section(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"provenance": {}}))
        with pytest.raises(ValueError, match="extractor"):
            load_extractor(path)
