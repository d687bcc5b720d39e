from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Run output for the price importer.

Each line is "<LABEL> <message>" with LABEL one of DEBUG|INFO|WARN|ERROR|SUMMARY,
so operators can grep a run and tests can assert on it. Row-level findings are
written as "row=<n> code=<code> ..." by the modules that produce them; the full
per-row record goes to the outcome log instead.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "set_debug",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "price_import"

# INFO(20) と WARNING(30) の間
SUMMARY_LEVEL = 25

_root: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Prefix every record with its short label (WARNING prints as WARN)."""

    LABELS = {
        SUMMARY_LEVEL: "SUMMARY",
        logging.WARNING: "WARN",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def setup_logging(stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled stdout handler to the package logger once.

    Module loggers (logging.getLogger(__name__) under price_import.*) reach the
    same handler through propagation; the package logger itself does not
    propagate to the root logger.
    """
    global _root
    if _root is not None:
        return _root

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    root = logging.getLogger(LOGGER_NAME)
    for old in list(root.handlers):
        root.removeHandler(old)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(LabeledFormatter())
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    root.propagate = False

    _root = root
    return root


def set_debug(enabled: bool = True) -> None:
    """Switch the package logger (and its handlers) between DEBUG and INFO."""
    root = get_logger()
    level = logging.DEBUG if enabled else logging.INFO
    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level)


def get_logger() -> logging.Logger:
    return _root if _root is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the handler and restore logging defaults (tests).

    The next setup_logging() binds a fresh handler to the current sys.stdout.
    """
    global _root
    root = logging.getLogger(LOGGER_NAME)
    for old in list(root.handlers):
        root.removeHandler(old)
    root.setLevel(logging.NOTSET)
    root.propagate = True
    _root = None
