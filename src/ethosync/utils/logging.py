"""Logging utilities for ethosync."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def level_for(quiet: bool = False, verbose: bool = False) -> int:
    """Map CLI verbosity flags to a logging level. quiet wins over verbose."""
    if quiet:
        return logging.WARNING
    if verbose:
        return logging.DEBUG
    return logging.INFO


def get_logger(
    name: str = "ethosync",
    level: int = logging.INFO,
    stream: TextIO = sys.stderr,
) -> logging.Logger:
    """Get a configured logger for ethosync.

    Stage modules log through logging.getLogger(__name__), so configuring the
    package logger here covers all of them. Calling again only changes the
    level; the handler is installed once.

    Args:
        name: Logger name.
        level: Logging level.
        stream: Output stream for the handler, used on first call only.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
    logger.setLevel(level)
    return logger
