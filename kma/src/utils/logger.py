"""
KMA Assistant - Logging
========================
One ``kma`` package logger owns the console handler; every module logs
through a child of it, so the whole application is re-levelled in one
place (``set_level``) and records are never emitted twice.

Default verbosity:
  • ``settings.LOG_LEVEL`` when set (``DEBUG`` … ``ERROR``)
  • otherwise from ``settings.ENV``: ``"dev"`` → DEBUG, ``"prod"`` → WARNING

Usage:
    from kma.src.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("[INDEX] Upserting %d chunk(s)…", n)
"""

import logging
import sys

from kma.config.settings import settings

PACKAGE_LOGGER = "kma"
HANDLER_NAME = "kma-console"

_ENV_LEVELS = {"dev": logging.DEBUG, "prod": logging.WARNING}
_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def default_level() -> int:
    if settings.LOG_LEVEL is not None:
        return logging.getLevelName(settings.LOG_LEVEL)
    return _ENV_LEVELS.get(settings.ENV, logging.INFO)


def _package_logger() -> logging.Logger:
    root = logging.getLogger(PACKAGE_LOGGER)
    if not any(h.get_name() == HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)
        root.setLevel(default_level())
        root.propagate = False
    return root


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Return the logger for *name*, nested under the ``kma`` package logger.

    Args:
        name:  Typically ``__name__``.  Names outside the package
               (``"__main__"``) are re-rooted as ``kma.<name>``.
        level: Per-logger override; by default the package level applies.
    """
    _package_logger()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_level(level: int | str) -> None:
    """Re-level every KMA logger at once (e.g. for ``--verbose``)."""
    _package_logger().setLevel(level)
