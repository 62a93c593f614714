"""Logging configuration for Lithicdrift.

Configures the root logger to write to the terminal.  Library modules
only create named loggers; the CLI is the one place that installs
handlers.
"""

from __future__ import annotations

import logging
import os
import sys


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger to output to stderr.

    Args:
        verbose: If True, log at DEBUG level.  ``LITHICDRIFT_VERBOSE=1``
            in the environment has the same effect.
    """
    env_verbose = os.getenv("LITHICDRIFT_VERBOSE", "").lower() in ("1", "true", "yes")
    level = logging.DEBUG if (verbose or env_verbose) else logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    if root.hasHandlers():
        root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ),
    )
    root.addHandler(handler)
