"""Tests for the objfeatures command-line interface."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
import yaml
from typer.testing import CliRunner

from objfeatures.cli.main import app
from objfeatures.io.artifacts import load_extractor, load_provenance

runner = CliRunner()


@pytest.fixture()
def workspace(tmp_path, rng):
    values = rng.standard_normal((30, 3)) * [1.0, 5.0, 0.5] + [10.0, 20.0, 3.0]
    df = pd.DataFrame(values, columns=["Area", "Perimeter", "Circularity"])
    df.insert(0, "Name", [f"cell{i}" for i in range(30)])
    df.loc[4, "Circularity"] = np.nan
    table = tmp_path / "objects.csv"
    df.to_csv(table, index=False)

    config = tmp_path / "config.yaml"
    config.write_text(yaml.safe_dump({
        "measurements": ["Area", "Perimeter", "Circularity"],
        "preprocessing": {"normalization": "mean_variance", "pca_retained_variance": 0.9},
    }))
    return tmp_path, table, config


def test_fit_extract_describe(workspace):
    tmp_path, table, config = workspace
    model = tmp_path / "model" / "extractor.json"

    result = runner.invoke(app, [
        "fit", "-c", str(config), "-t", str(table), "-o", str(model), "--name-column", "Name",
    ])
    assert result.exit_code == 0, result.output
    assert model.exists()
    assert model.with_suffix(".config.yaml").exists()
    assert "config_hash" in load_provenance(model)
    chain = load_extractor(model)

    features = tmp_path / "features.npy"
    result = runner.invoke(app, [
        "extract", "-e", str(model), "-t", str(table), "-o", str(features), "--name-column", "Name",
    ])
    assert result.exit_code == 0, result.output
    assert "missing features" in result.output
    matrix = np.load(features)
    assert matrix.shape == (30, chain.n_features)

    result = runner.invoke(app, ["describe", "-e", str(model)])
    assert result.exit_code == 0, result.output
    assert "pca" in result.output
    assert "measurements" in result.output
    assert "component 1" in result.output


def test_fit_dry_run(workspace):
    tmp_path, table, config = workspace
    model = tmp_path / "extractor.json"
    result = runner.invoke(app, ["fit", "-c", str(config), "-t", str(table), "-o", str(model), "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "Config validated" in result.output
    assert not model.exists()
