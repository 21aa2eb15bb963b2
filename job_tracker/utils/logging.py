"""Logging setup for the job tracker CLI.

Package modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves; the CLI calls ``configure_logging`` once at
startup. The HTTP stack logs every request at INFO, so its loggers are held
at WARNING unless the tracker itself runs at DEBUG.
"""

import logging
import sys
from typing import TextIO

LOGGER_NAME = "job_tracker"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Third-party loggers that are noisy at INFO
HTTP_LOGGERS = ("httpx", "httpcore")

_handler: logging.Handler | None = None


def _parse_level(level: str | None) -> int:
    if not level:
        return logging.INFO
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str | None = None, stream: TextIO | None = None) -> logging.Logger:
    """Route tracker logs to stderr at the given level.

    Calling it again only changes the level; the handler is installed once.

    Args:
        level: Level name such as ``DEBUG`` or ``WARNING``. Unknown or
            missing names fall back to INFO.
        stream: Where to write records (stderr by default).

    Returns:
        The ``job_tracker`` package logger.
    """
    global _handler

    log_level = _parse_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    if _handler is None:
        _handler = logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(_handler)
        # CLI output is the only consumer
        logger.propagate = False
    _handler.setLevel(log_level)

    http_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    return logger


def reset_logging() -> None:
    """Undo configure_logging (used by tests)."""
    global _handler

    logger = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)
