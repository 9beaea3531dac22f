"""Logging configuration for check-disk-usage.

Standard output carries the check result that the monitoring framework
parses, so log records always go to standard error. The CLI calls
``setup_logging()`` once at startup; modules fetch named loggers through
``get_logger()``.
"""

from __future__ import annotations

import logging
import sys


def setup_logging(log_level: str = "WARNING") -> None:
    """Configure the root logger with a single stderr handler.

    Parameters
    ----------
    log_level: str
        The minimum severity level to emit (e.g. "DEBUG", "INFO").
        Unknown names fall back to WARNING.

    Notes
    -----
    Calling this again after the root logger has handlers only adjusts
    the level.
    """
    level = getattr(logging, str(log_level).upper(), logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    logging.basicConfig(level=level, handlers=[console_handler])


def get_logger(name: str) -> logging.Logger:
    """Retrieve a named logger."""
    return logging.getLogger(name)
