"""Unified logging configuration for the designsync backend."""
from __future__ import annotations

import logging
from pathlib import Path

from .config import LOG_DIR as _LOG_DIR_ENV
from .settings import LOG_LEVEL

# Log directory - configurable via LOG_DIR env var for Docker
LOG_DIR = Path(_LOG_DIR_ENV or str(Path(__file__).parent.parent / "logs"))

# Prevent duplicate handlers
_configured_loggers: set[str] = set()


def setup_logger(name: str, filename: str) -> logging.Logger:
    """Setup a logger with file and console handlers.

    Args:
        name: Logger name (e.g., 'designsync.extractor')
        filename: Log file name (e.g., 'extractor.log')

    Returns:
        Configured logger instance
    """
    if name in _configured_loggers:
        return logging.getLogger(name)

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False  # Prevent duplicate logs

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    # File handler
    fh = logging.FileHandler(LOG_DIR / filename, encoding='utf-8')
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(name)s] [%(levelname)s] %(message)s"
    ))

    # Console handler
    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter(
        "%(asctime)s [%(name)s] %(message)s"
    ))

    logger.addHandler(fh)
    logger.addHandler(sh)

    _configured_loggers.add(name)
    return logger


# Pre-configured loggers
def get_service_logger() -> logging.Logger:
    """Logger for operation dispatch (one line per handled operation)."""
    return setup_logger("designsync.service", "service.log")


def get_session_logger() -> logging.Logger:
    """Logger for working-file session changes."""
    return setup_logger("designsync.session", "session.log")
