"""Logging for tokencalc.

Every module logs through a child of the ``tokencalc`` logger obtained
from ``get_logger``. Nothing is emitted until an application calls
``setup_logging`` (usually through ``api.configure_logging``), which
attaches the handlers.
"""

import logging
import sys
from datetime import datetime
from typing import Optional, Union

ROOT_LOGGER = "tokencalc"


class StructuredFormatter(logging.Formatter):
    """One line per record: ``<iso timestamp> [LEVEL] name: message``.

    A traceback, when the record carries one, follows on the next lines.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        message = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    level: Union[str, int] = "INFO", log_file: Optional[str] = None
) -> logging.Logger:
    """Attach handlers to the ``tokencalc`` logger, replacing earlier ones.

    Args:
        level: Level name such as "DEBUG" or "warning", or a numeric level
        log_file: Also append records to this file

    Returns:
        The configured ``tokencalc`` logger

    Raises:
        ValueError: The level name is not a logging level
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(_resolve_level(level))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for one module, e.g. ``get_logger("worker")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
