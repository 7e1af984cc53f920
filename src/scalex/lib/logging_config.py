"""Logging configuration for ScaleX commands."""

from __future__ import annotations

import logging
import os
import sys

LOGGER_NAME = "scalex"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
EVENT_PREFIX = "[scalex event]"


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the ScaleX logger hierarchy.

    Verbosity resolution:
    1. ``quiet`` limits output to errors
    2. ``verbose`` enables debug output (boto logging stays at WARNING)
    3. Otherwise ``SCALEX_LOG_LEVEL`` or INFO

    Args:
        verbose: Enable debug logging
        quiet: Only log errors
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level_name = os.getenv("SCALEX_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(handler)
    else:
        for handler in logger.handlers:
            handler.setLevel(level)

    logger.propagate = False

    # Third-party SDK loggers are noisy at DEBUG
    for name in ("boto3", "botocore", "urllib3", "s3transfer"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger inside the ScaleX hierarchy.

    Args:
        name: Module name, usually ``__name__``

    Returns:
        Logger instance
    """
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
