"""
Structured Logging for objfeatures
==================================

Rich console logging for the ``objfeatures`` logger hierarchy, plus an
optional plain-text file log for batch runs.

Design Principles:
    - Importing the package installs no handlers; records propagate to the
      host application until ``configure_logging`` is called explicitly
    - ``configure_logging`` puts the handlers on the ``objfeatures`` logger,
      never on the root logger, and stops propagation to avoid duplicates
    - Pipe-delimited key=value format for structured log messages
    - ``configure_logging`` may be called again (e.g. by the CLI after the
      config is read) to change the level or add a file log

Severity Levels:
    info     (cyan)     routine progress
    ok       (green)    successful completion
    warn     (yellow)   recoverable issues (missing features, degenerate columns)
    error    (red)      failures
    metric   (magenta)  quantitative results (retained variance, importance)

Usage::

    from objfeatures.utils.logging import get_logger, log

    logger = get_logger(__name__)
    logger.info("fit_pca | n_samples=120 n_features=14 n_components=5")
    log("training_features | n_objects=120 n_features=5", severity="metric")
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

PACKAGE_LOGGER = "objfeatures"

SEVERITY_COLORS = {
    "info":   "cyan",
    "ok":     "green",
    "warn":   "yellow",
    "error":  "red",
    "metric": "magenta",
}

_SEVERITY_LEVELS = {
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_PLAIN_FORMAT = "[%(asctime)s] %(levelname)-7s %(name)s - %(message)s"

# ---------------------------------------------------------------------------
# Module-level state
# ---------------------------------------------------------------------------

_console = Console(stderr=True)
_console_handler: Optional[RichHandler] = None
_file_handler: Optional[logging.FileHandler] = None


def _level(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[str | Path] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the ``objfeatures`` loggers.

    The console handler is installed once; later calls update the level and
    add a file handler if ``log_dir`` is given and none exists yet.

    Args:
        level:    Log level string (DEBUG, INFO, WARNING, ERROR).
        log_dir:  Directory for log files. Created if needed.
        log_file: Log filename. Defaults to ``objfeatures_<timestamp>.log``.
    """
    global _console_handler, _file_handler

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    pkg_logger.setLevel(_level(level))

    if _console_handler is None:
        _console_handler = RichHandler(
            console=_console,
            rich_tracebacks=True,
            show_path=False,
            markup=False,
        )
        _console_handler.setFormatter(logging.Formatter("%(message)s"))
        pkg_logger.addHandler(_console_handler)
        pkg_logger.propagate = False

    if log_dir is not None and _file_handler is None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        if log_file is None:
            log_file = f"objfeatures_{datetime.now():%Y%m%d_%H%M%S}.log"
        _file_handler = logging.FileHandler(log_dir / log_file, encoding="utf-8")
        _file_handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))
        pkg_logger.addHandler(_file_handler)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger. No handlers are installed here; records propagate to the
    host application's logging until ``configure_logging`` is called.

    Args:
        name:  Logger name (typically ``__name__``).
        level: Per-logger level override.

    Returns:
        ``logging.Logger`` instance.
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(_level(level))
    return logger


def log(msg: str, severity: str = "info") -> None:
    """
    Quick-log a message with a severity tag.

    Args:
        msg:      Pipe-delimited message (e.g. ``"fit | mode=min_max"``).
        severity: One of info, ok, warn, error, metric.
    """
    logger = get_logger(PACKAGE_LOGGER)
    colour = SEVERITY_COLORS.get(severity, "white")
    logger.log(
        _SEVERITY_LEVELS.get(severity, logging.INFO),
        f"[{colour}]{escape(msg)}[/{colour}]",
        extra={"markup": True},
    )
