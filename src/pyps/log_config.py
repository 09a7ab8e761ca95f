"""
Logging configuration for pyps.

Diagnostics go to stderr so that the report on stdout stays clean.
"""

import logging
import sys

LOGGER_NAME = "pyps"


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """
    Configure and return the package logger.

    Args:
        level: Logging level (default: WARNING)

    Returns:
        The configured "pyps" logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(message)s"))
    logger.addHandler(handler)

    logger.propagate = False

    return logger
