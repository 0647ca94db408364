"""
CLI entry point for objfeatures.

Commands:
  - 'fit'      → build and fit an extractor chain from a measurement table
  - 'extract'  → apply a saved chain to a measurement table, write .npy
  - 'describe' → print a saved chain and its feature names
Measurement tables are CSV files with one row per object; empty cells are
treated as missing measurements.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

app = typer.Typer(
    name="objfeatures",
    help="Feature preparation for object classification.",
    add_completion=False,
)
console = Console()


def _read_objects(table: Path, name_column: Optional[str]):
    import pandas as pd

    from objfeatures.objects import objects_from_table

    df = pd.read_csv(table)
    if name_column is not None and name_column not in df.columns:
        raise typer.BadParameter(f"Column '{name_column}' not found in {table}")
    return objects_from_table(df, name_column=name_column)


@app.command()
def fit(
    config: Path = typer.Option(..., "--config", "-c", help="Path to YAML config file"),
    table: Path = typer.Option(..., "--table", "-t", help="CSV measurement table of training objects"),
    output: Path = typer.Option(Path("extractor.json"), "--output", "-o", help="Where to save the extractor chain"),
    name_column: Optional[str] = typer.Option(None, "--name-column", help="Column holding object names"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate config and print plan without running"),
) -> None:
    """Fit normalization / PCA on training objects and save the extractor chain."""
    from objfeatures.config import build_provenance, load_config, save_config_snapshot
    from objfeatures.extractors.measurements import MeasurementListExtractor
    from objfeatures.io.artifacts import save_extractor
    from objfeatures.training import prepare_training_features
    from objfeatures.utils.logging import configure_logging

    cfg = load_config(config)
    configure_logging(cfg.logging.level, cfg.logging.log_dir)
    prep = cfg.preprocessing

    if dry_run:
        console.print("[bold green]Config validated successfully.[/bold green]")
        console.print(f"  Measurements: {cfg.measurements}")
        console.print(f"  Normalization: {prep.normalization.value}")
        console.print(f"  PCA retained variance: {prep.pca_retained_variance}")
        console.print(f"  Whiten: {prep.whiten}")
        return

    objects = _read_objects(table, name_column)
    console.print(f"[bold]Training objects:[/bold] {len(objects)}")

    result = prepare_training_features(
        MeasurementListExtractor(cfg.measurements),
        None,
        objects,
        normalization=prep.normalization,
        pca_retained_variance=prep.pca_retained_variance,
        supports_missing_values=prep.supports_missing_values,
        whiten=prep.whiten,
        missing_value=prep.missing_value,
        clamp_degenerate=prep.clamp_degenerate,
    )

    save_extractor(output, result.extractor, provenance=build_provenance(cfg))
    save_config_snapshot(cfg, output.with_suffix(".config.yaml"))
    console.print(
        f"\n[bold green]Fit complete.[/bold green] "
        f"{result.extractor.n_features} features → {output}"
    )


@app.command()
def extract(
    extractor: Path = typer.Option(..., "--extractor", "-e", help="Saved extractor chain (.json)"),
    table: Path = typer.Option(..., "--table", "-t", help="CSV measurement table"),
    output: Path = typer.Option(Path("features.npy"), "--output", "-o", help="Destination .npy file"),
    name_column: Optional[str] = typer.Option(None, "--name-column", help="Column holding object names"),
) -> None:
    """Extract features for every object in a table."""
    import numpy as np

    from objfeatures.io.artifacts import load_extractor
    from objfeatures.utils.logging import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
    chain = load_extractor(extractor)
    objects = _read_objects(table, name_column)

    n_incomplete = 0
    for i, obj in enumerate(objects):
        missing = chain.get_missing_features(None, obj)
        if missing:
            n_incomplete += 1
            logger.warning("Object %s is missing features: %s", obj.name or i, missing)
    if n_incomplete:
        console.print(f"  [yellow]{n_incomplete} objects have missing features[/yellow]")

    features = chain.extract_matrix(None, objects)
    output.parent.mkdir(parents=True, exist_ok=True)
    np.save(output, features)
    console.print(
        f"\n[bold green]Extraction complete.[/bold green] {features.shape} → {output}"
    )


@app.command()
def describe(
    extractor: Path = typer.Option(..., "--extractor", "-e", help="Saved extractor chain (.json)"),
) -> None:
    """Print the layers of a saved extractor chain and its output features."""
    from objfeatures.io.artifacts import load_extractor, load_provenance

    chain = load_extractor(extractor)

    node = chain
    depth = 0
    while node is not None:
        console.print(f"{'  ' * depth}[cyan]{node.type_tag}[/cyan] → {node.n_features} features")
        node = getattr(node, "extractor", None)
        depth += 1

    console.print("\n[bold]Features:[/bold]")
    for name in chain.feature_names:
        console.print(f"  {name}")

    provenance = load_provenance(extractor)
    if provenance:
        console.print(f"\n[bold]Provenance:[/bold] {provenance}")


if __name__ == "__main__":
    app()
