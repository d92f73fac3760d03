"""Logging setup for the guidegen CLI and service."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from .errors import OutputUnwritable

_ROOT = "guidegen"
_CONSOLE_FORMAT = "[guidegen] %(levelname)s %(message)s"
# Extraction and document building run on worker threads.
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``guidegen.<name>`` (or the package logger when no name is given)."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Send guidegen logs to stderr and, when ``log_file`` is given, to that file too.

    The console shows INFO (DEBUG with ``verbose``). The file always records DEBUG,
    so per-file extraction detail is kept without cluttering the terminal.
    Raises ``OutputUnwritable`` when the log file cannot be opened.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_ROOT)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)
    logger.setLevel(console_level)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            sink = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as exc:
            raise OutputUnwritable(f"Cannot open log file {log_file}: {exc}") from exc
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)
        logger.setLevel(logging.DEBUG)

    return logger


__all__ = ["configure_logging", "get_logger"]
