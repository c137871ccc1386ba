"""Logging helpers for Lumiq."""

from __future__ import annotations

import logging
import os

_LOGGER: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Return the package logger, configuring it on first use."""

    global _LOGGER
    if _LOGGER is None:
        _LOGGER = logging.getLogger("lumiq")
        if not _LOGGER.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            handler.setFormatter(formatter)
            _LOGGER.addHandler(handler)
        _LOGGER.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    return _LOGGER


logger = get_logger()
