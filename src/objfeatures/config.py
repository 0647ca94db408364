"""
Configuration Schema and Loader
===============================

Pydantic-based configuration for building a feature-extraction chain from
training objects.

Design Principles:
    - Single YAML file describes measurements and preprocessing
    - Pydantic validation catches typos and out-of-range values before fitting
    - Snapshots and provenance are written next to every saved extractor

Configuration Hierarchy::

    PipelineConfig
    ├── measurements          Ordered measurement names (the raw features)
    ├── PreprocessingConfig   Normalization, missing values, PCA
    └── LoggingConfig         Log level and optional log directory

Example::

    measurements: [Area, Perimeter, "Nucleus: Circularity"]
    preprocessing:
      normalization: mean_variance
      pca_retained_variance: 0.95
"""

from __future__ import annotations

import datetime
import hashlib
import json
import subprocess
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from objfeatures import __version__
from objfeatures.preprocessing.normalization import Normalization


class PreprocessingConfig(BaseModel):
    """How raw measurement features are prepared for the classifier."""

    normalization: Normalization = Field(
        default=Normalization.NONE,
        description="'none', 'mean_variance' or 'min_max'",
    )
    missing_value: Optional[float] = Field(
        default=None,
        description=(
            "Substitute for missing measurements. None lets training choose: "
            "NaN if the classifier handles missing values and no PCA is used, else 0."
        ),
    )
    pca_retained_variance: Optional[float] = Field(
        default=None,
        gt=0.0,
        le=1.0,
        description="Fraction of variance kept by PCA; None disables PCA",
    )
    whiten: bool = Field(
        default=True, description="Whiten PCA components to unit variance"
    )
    clamp_degenerate: bool = Field(
        default=True,
        description="Use scale 1 for constant columns instead of an infinite scale",
    )
    supports_missing_values: bool = Field(
        default=False,
        description="Whether the downstream classifier accepts NaN features",
    )


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: Optional[Path] = Field(
        default=None, description="Directory for plain-text log files"
    )


class PipelineConfig(BaseModel):
    """Top-level configuration."""

    measurements: list[str] = Field(
        ..., min_length=1, description="Measurement names, one feature each"
    )
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("measurements", mode="before")
    @classmethod
    def _coerce_measurements(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [str(m) for m in v]
        return v


def load_config(path: str | Path) -> PipelineConfig:
    """Load and validate a YAML config file.

    Parameters
    ----------
    path : str | Path
        Path to YAML config file.

    Returns
    -------
    PipelineConfig
    """
    path = Path(path)
    with open(path, "r") as f:
        raw = yaml.safe_load(f)
    return PipelineConfig(**(raw or {}))


def save_config_snapshot(cfg: PipelineConfig, dest: Path) -> None:
    """Save a YAML snapshot of the config for provenance."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    data = json.loads(cfg.model_dump_json())
    with open(dest, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def build_provenance(cfg: Optional[PipelineConfig] = None) -> dict:
    """Build a provenance dictionary for a saved extractor.

    Returns
    -------
    dict
        Timestamp, package version, config hash (if a config is given) and
        git commit.
    """
    prov: dict[str, Any] = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "objfeatures_version": __version__,
    }
    if cfg is not None:
        prov["config_hash"] = hashlib.sha256(cfg.model_dump_json().encode()).hexdigest()
    try:
        git_hash = subprocess.check_output(
            ["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL
        ).decode().strip()
        prov["git_commit"] = git_hash
    except (OSError, subprocess.CalledProcessError):
        prov["git_commit"] = "unavailable"
    return prov
