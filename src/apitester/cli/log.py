"""Logging setup for the CLI.

Library modules only create ``logging.getLogger(__name__)`` loggers;
handlers are attached here, once, by the entry point.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def level_for(verbosity: int, default: str = "WARNING") -> int:
    """Map ``-v`` counts onto a log level (``-v`` INFO, ``-vv`` DEBUG)."""
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.getLevelName(default.upper())


def setup_logging(verbosity: int = 0, default: str = "WARNING") -> None:
    """Configure the root logger to write to stderr.

    Uses ``rich.logging.RichHandler`` when Rich is installed and a
    plain ``basicConfig`` format otherwise.
    """
    level = level_for(verbosity, default)
    try:
        from rich.console import Console
        from rich.logging import RichHandler
    except ModuleNotFoundError:
        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            datefmt="%H:%M:%S",
            stream=sys.stderr,
        )
        return

    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
