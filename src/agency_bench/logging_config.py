"""Process-wide diagnostic logging setup."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO", verbose: bool = False) -> logging.Logger:
    """Configure logging and return the package logger.

    Diagnostics go to stderr so they never interleave with the agent's
    echoed stdout.
    """
    resolved = logging.DEBUG if verbose else logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    logger = logging.getLogger("agency_bench")
    logger.debug("Logging configured with level %s", logging.getLevelName(resolved))
    return logger
