"""
Console logging for the orchestration compiler.

Each named logger writes one pipe-separated line per record to stdout, with
the level name colored for terminals. Loggers are configured once and do not
propagate, so embedding applications keep control of the root logger.

Usage:
    from shared.logger import get_logger

    logger = get_logger(__name__)
    logger.debug("Validated plan")
"""

import logging
import sys
from typing import Dict, Optional

from shared.config import config

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_RESET = "\033[0m"
_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}

_configured: Dict[str, logging.Logger] = {}


class ColoredFormatter(logging.Formatter):
    """Colors the level name of a copy of the record, leaving the original intact."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{_RESET}"
        return super().format(colored)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Return the console logger for ``name``, configuring it on first use.

    ``level`` defaults to ``config.log_level``. Later calls for the same name
    return the already configured logger unchanged.
    """
    logger = _configured.get(name)
    if logger is not None:
        return logger

    if level is None:
        level = logging.getLevelName(config.log_level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()
    logger.addHandler(_console_handler(level))

    _configured[name] = logger
    return logger
