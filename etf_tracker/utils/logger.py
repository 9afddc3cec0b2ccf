"""Logging configuration for ETF Tracker."""

import logging
import sys

from etf_tracker.config import LOG_LEVEL


def setup_logger(name: str = "etf_tracker", level: str | None = None) -> logging.Logger:
    """Create and configure a logger under the ``etf_tracker`` namespace."""
    if not name.startswith("etf_tracker"):
        name = f"etf_tracker.{name}"
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-20s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    level = level or LOG_LEVEL
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
