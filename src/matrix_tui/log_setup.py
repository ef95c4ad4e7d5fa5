"""Logging configuration; curses owns the screen, so records only ever go to a file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "matrix_tui"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: Optional[str | Path] = None) -> logging.Logger:
    """Configure the package logger.

    With ``log_file`` a :class:`logging.FileHandler` is attached (parent
    directories are created); without one a :class:`logging.NullHandler` keeps
    records away from the terminal. Calling it again replaces earlier handlers.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    handler: logging.Handler
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = logging.NullHandler()
    logger.addHandler(handler)
    logger.propagate = False
    return logger
