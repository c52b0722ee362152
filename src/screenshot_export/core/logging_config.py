"""
Logging for the screenshot export pipeline.

The package logger ``screenshot-export`` owns the only handler. Component
loggers (``screenshot-export.pipeline``, ``screenshot-export.delivery``, ...)
carry no handler or level of their own and propagate to it, so a single
``LOG_LEVEL`` or ``--debug`` switch governs every stage of an export.
"""

import os
import sys
import logging
from typing import IO, Optional, Union

PACKAGE_LOGGER = "screenshot-export"

FORMATS = {
    "structured": (
        "%(asctime)s | %(name)s | %(levelname)-8s | "
        "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
    ),
    "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Union[str, int, None] = None) -> int:
    """Numeric level from an override, else LOG_LEVEL, else INFO."""
    if isinstance(level, int):
        return level
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def build_formatter(format_type: str = "structured") -> logging.Formatter:
    """Formatter for LOG_FORMAT (or format_type); unknown names fall back to simple."""
    chosen = os.getenv("LOG_FORMAT", format_type).lower()
    if chosen == "structured":
        return logging.Formatter(FORMATS["structured"], datefmt=DATE_FORMAT)
    return logging.Formatter(FORMATS["simple"])


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: Union[str, int, None] = None,
    format_type: str = "structured",
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """
    Configure a logger that writes its own records.

    Args:
        name: Logger name (defaults to the package logger)
        level: Level name or number (defaults to LOG_LEVEL, then INFO)
        format_type: "structured" or "simple"; LOG_FORMAT wins when set
        stream: Output stream for a newly attached handler (stdout by default)

    Returns:
        The configured logger. Calling again updates the level but never
        attaches a second handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
        handler.setFormatter(build_formatter(format_type))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(component: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Logger for one pipeline component.

    ``get_logger("pipeline")`` returns ``screenshot-export.pipeline``, a
    child that defers level and output to the package logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not package_logger.handlers:
        setup_logger()

    if component == PACKAGE_LOGGER:
        return package_logger
    if not component.startswith(f"{PACKAGE_LOGGER}."):
        component = f"{PACKAGE_LOGGER}.{component}"

    child = logging.getLogger(component)
    child.propagate = True
    return child


logger = setup_logger()
