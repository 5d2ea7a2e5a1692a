from __future__ import annotations

import logging
import sys

"""Logging initialization with labeled prefixes.

Console output uses one label per level (INFO|WARN|ERROR|SUMMARY) so the CLI
output stays grep-able. The application logger is the package root
("patient_import"); module loggers created with logging.getLogger(__name__)
propagate to it.
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
    "LabeledFormatter",
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
]

LOGGER_NAME = "patient_import"

# Final report line level, above INFO so it survives a raised threshold
SUMMARY_LEVEL = 25

_app_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formats records as `LABEL message`."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def setup_logging(debug: bool = False) -> logging.Logger:
    """Configure the application logger (idempotent).

    Output goes to stdout. `debug=True` lowers both logger and handler to
    DEBUG, also on an already configured logger.
    """
    global _app_logger

    level = logging.DEBUG if debug else logging.INFO
    if _app_logger is not None:
        _app_logger.setLevel(level)
        for h in _app_logger.handlers:
            h.setLevel(level)
        return _app_logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # stdout only; the root logger may belong to the host (pytest, embedding)
    logger.propagate = False

    _app_logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the configured application logger, configuring it on first use."""
    if _app_logger is None:
        return setup_logging()
    return _app_logger


def log_summary(message: str) -> None:
    """Log a message at SUMMARY level."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Drop the configured handler so the next setup_logging() starts clean (tests)."""
    global _app_logger
    if _app_logger is not None:
        for handler in _app_logger.handlers[:]:
            _app_logger.removeHandler(handler)
    _app_logger = None
