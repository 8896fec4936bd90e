"""
Logging configuration for Powertools.

Registry and store operations run inside a LogContext naming the entry
or app they work on. Both formatters render that context: the console
formatter as a ``[key=value ...]`` suffix, the JSON formatter under
``context``.
"""

from __future__ import annotations

import argparse
import json
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

CONTEXT_ATTR = "powertools_context"

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(filename)s:%(lineno)d] %(message)s"


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, CONTEXT_ATTR, None) or {}


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        context = _record_context(record)
        if context:
            log_data["context"] = context

        return json.dumps(log_data, default=str)


class ContextFormatter(logging.Formatter):
    """Plain text formatter with the log context appended, optionally colored."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str = TEXT_FORMAT, color: bool = False):
        super().__init__(fmt)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.color:
            record.levelname = f"{self.COLORS.get(record.levelno, '')}{levelname}{self.RESET}"
        try:
            result = super().format(record)
        finally:
            record.levelname = levelname

        context = _record_context(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            result = f"{result} [{pairs}]"
        return result


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
):
    """
    Configure the root logger.

    Args:
        level: Console logging level
        log_file: Also log everything (DEBUG and up) to this rotating file
        json_logs: Use JSON lines for console and file output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if log_file else level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if json_logs:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(ContextFormatter(color=sys.stderr.isatty()))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter() if json_logs else ContextFormatter(FILE_FORMAT))
        root_logger.addHandler(file_handler)

    # Request lines from the HTTP client are too chatty below WARNING
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the shared -v, --log-file and --json-logs options to a CLI parser."""
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument("--log-file", help="Write a debug log to this file")
    parser.add_argument(
        "--json-logs", action="store_true", help="Log JSON lines instead of text"
    )


def logging_options(args: argparse.Namespace) -> Dict[str, Any]:
    """Keyword arguments for setup_logging() from parsed CLI options."""
    return {
        "level": logging.DEBUG if args.verbose else logging.WARNING,
        "log_file": Path(args.log_file).expanduser() if args.log_file else None,
        "json_logs": args.json_logs,
    }


class LogContext:
    """
    Context manager adding key/value context to log records.

    Nested contexts merge, inner keys win.

    Example:
        with LogContext(entry="build", script="build.py"):
            logger.error("Registration failed")  # carries entry and script
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._old_factory = None

    def __enter__(self):
        self._old_factory = logging.getLogRecordFactory()

        context = self.context
        old_factory = self._old_factory

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            setattr(record, CONTEXT_ATTR, {**_record_context(record), **context})
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, *args):
        logging.setLogRecordFactory(self._old_factory)
