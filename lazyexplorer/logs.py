"""Diagnostic logging setup.

The terminal belongs to the UI while the explorer runs, so diagnostics go
to a file when one is requested and are otherwise discarded. User-facing
messages live in the in-app log panel instead.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(path: Path | None = None, level: str | int = logging.INFO) -> logging.Logger:
    """Route ``lazyexplorer`` loggers to ``path`` (or a null handler)."""
    logger = logging.getLogger("lazyexplorer")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    logger.propagate = False
    if path is None:
        logger.addHandler(logging.NullHandler())
        return logger
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger


__all__ = ["LOG_FORMAT", "configure_logging"]
