from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Console logging for tabular-import.

One line per record, ``LABEL message``, on stdout:

    INFO people.csv: found 120 rows with 6 columns
    WARN people.csv line 14: 5 cells, header has 6
    ERROR people.csv: missing required: Name
    SUMMARY files=1/1 success=0 failed=1 ...

SUMMARY is a custom level (25) reserved for the final run line. Library
modules log through ``logging.getLogger(__name__)``; everything below the
``tabular_import`` logger shares the single handler installed here.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_level",
    "setup_logging",
]

LOGGER_NAME = "tabular_import"
SUMMARY_LEVEL = 25

LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        label = LABELS.get(record.levelno, record.levelname)
        text = f"{label} {record.getMessage()}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


class _StdoutHandler(logging.StreamHandler):
    """StreamHandler that looks up sys.stdout on every write.

    Keeps output going to the current stdout when it is swapped after
    setup (pytest capture, contextlib.redirect_stdout).
    """

    def __init__(self) -> None:
        super().__init__(sys.stdout)

    @property
    def stream(self) -> TextIO:
        return sys.stdout

    @stream.setter
    def stream(self, value: TextIO) -> None:
        pass


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Install the labeled stdout handler once and return the package logger."""
    global _logger
    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = _StdoutHandler()
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    _logger = logger
    return logger


def set_level(level: int) -> None:
    """Change the threshold of the package logger (e.g. --debug)."""
    get_logger().setLevel(level)


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Undo setup_logging(). Used by tests."""
    global _logger
    if _logger is not None:
        for handler in list(_logger.handlers):
            _logger.removeHandler(handler)
        _logger.propagate = True
        _logger.setLevel(logging.NOTSET)
    _logger = None
