"""
Application logger.

Modules either import ``logger`` from here or use ``logging.getLogger(__name__)``;
both end up under the ``streamchat`` logger hierarchy.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger("streamchat")


def setup_logging(level: str | int = logging.INFO) -> None:
    """Attach a stdout handler to the package logger (idempotent)."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger.setLevel(level)
    if not any(getattr(h, "_streamchat", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._streamchat = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
