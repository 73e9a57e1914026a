"""Centralized logging configuration for the dodger entry points."""

from __future__ import annotations

import logging
import os
from typing import Iterable

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

APP_LOGGER_NAME = "dodger.backend"

# Package loggers every module logger hangs off via getLogger(__name__)
PROJECT_LOGGERS = ("core", "backend")


def configure_logging(
    *,
    level: str | None = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
    extra_loggers: Iterable[str] = PROJECT_LOGGERS,
) -> logging.Logger:
    """Configure logging for a dodger process.

    The engine logs spawns, level-ups and collisions at DEBUG; the runner
    logs lifecycle, game over and the periodic stats line at INFO. Setting
    the level on the ``core`` and ``backend`` package loggers therefore
    controls how chatty a session is without touching third-party loggers.

    Args:
        level: Optional explicit log level. Falls back to ``DODGER_LOG_LEVEL``
            env var or INFO when not provided.
        format: Log format string.
        datefmt: Date format string.
        extra_loggers: Logger names aligned with the resolved level.

    Returns:
        The application logger (``dodger.backend``).
    """
    raw_level = level if level is not None else os.getenv("DODGER_LOG_LEVEL")
    resolved_level = (raw_level or "INFO").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    names = tuple(extra_loggers)
    for logger_name in (APP_LOGGER_NAME, *names):
        logging.getLogger(logger_name).setLevel(resolved_level)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.debug("Logging configured at %s for %s", resolved_level, ", ".join(names))
    return app_logger
