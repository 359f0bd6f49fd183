"""Process-wide logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_ROOT_LOGGER = "longway"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a console handler to the ``longway`` logger tree (once)."""
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)

    # Prevent duplicate handlers when uvicorn reloads the app
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
