"""
Logging for kupak.

Every module logs through a child of the ``kupak`` logger; the CLI
attaches a single stderr handler at startup.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

ROOT_LOGGER_NAME = "kupak"
DEFAULT_FORMAT = "%(levelname)s %(name)s: %(message)s"

_root_logger = logging.getLogger(ROOT_LOGGER_NAME)


def setup_logging(level: str | int = "WARNING", stream: TextIO | None = None) -> None:
    """
    Send kupak log records at *level* and above to *stream*.

    Calling it again replaces the previous handler, so repeated CLI
    invocations in one process do not duplicate output.

    Example:
        setup_logging("DEBUG")
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    _root_logger.handlers.clear()
    _root_logger.addHandler(handler)
    _root_logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get the logger of a kupak submodule, e.g. ``get_logger("loader")``."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
