"""
ragctl - Logging Implementation
================================
Named stdout loggers with one shared line format for every ragctl module.

Verbosity follows ``settings.ENV`` unless ``settings.LOG_LEVEL`` names a
level explicitly:

  • ``"dev"``  → DEBUG
  • ``"prod"`` → WARNING
  • anything else → INFO

Usage:
    from ragctl.src.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Ingested %d chunk(s)", count)
"""

import logging
import sys

from ragctl.config.settings import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ENV_LEVELS = {"dev": logging.DEBUG, "prod": logging.WARNING}

# HTTP client libraries used by the Gemini SDK log every request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "urllib3", "google_genai")


def resolve_level(env: str, override: str | None = None) -> int:
    """Numeric level for *env*, or for *override* when it is a valid level name."""
    if override:
        named = logging.getLevelName(override.upper())
        if isinstance(named, int):
            return named
    return _ENV_LEVELS.get(env, logging.INFO)


_DEFAULT_LEVEL = resolve_level(settings.ENV, settings.LOG_LEVEL)


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Return the logger *name*, attaching the stdout handler on first use.

    Args:
        name:  Typically ``__name__`` of the calling module.
        level: Explicit level; defaults to the settings-derived level.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    resolved = _DEFAULT_LEVEL if level is None else level
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def quiet_third_party(level: int = logging.WARNING) -> None:
    """Raise the threshold of per-request HTTP client loggers."""
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(level)
