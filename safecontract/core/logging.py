"""Logging configuration for the API and the CLI.

Two renderings of the same records:
  - ``JSONFormatter``: one JSON document per line for staging/production
  - ``DevFormatter``: coloured single lines for a terminal

Anything passed through ``extra=`` (scan digests, check counts, request ids,
access-log fields) ends up in the output of both formatters; there is no
fixed list of promoted keys.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

# Attributes every LogRecord carries; whatever else is set came from ``extra=``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Fields attached to ``record`` via ``extra=``, in insertion order."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(record_extras(record))

        if record.exc_info and record.exc_info[1]:
            exc_type, exc, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else type(exc).__name__,
                "message": str(exc),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    """Coloured ``HH:MM:SS [LEVEL] logger: message key=value`` lines."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    DIM = "\033[2m"
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        stamp = _record_time(record).strftime("%H:%M:%S")
        line = f"{color}{stamp} [{record.levelname:>8s}]{self.RESET} {record.name}: "

        extras = record_extras(record)
        req_id = extras.pop("request_id", None)
        if req_id:
            line += f"[{str(req_id)[:8]}] "
        line += record.getMessage()

        fields = " ".join(f"{k}={v}" for k, v in extras.items() if v is not None)
        if fields:
            line += f" {self.DIM}{fields}{self.RESET}"

        if record.exc_info and record.exc_info[1]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    env: str = "development",
    log_level: str = "INFO",
    stream: IO[str] | None = None,
) -> None:
    """Install a single root handler.

    Args:
        env: Application environment; staging and production log JSON
        log_level: Minimum log level name
        stream: Output stream, stdout by default. The CLI passes stderr so
            that report output on stdout stays parseable.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if env in ("staging", "production") else DevFormatter())
    root.addHandler(handler)

    for noisy in ("uvicorn.access", "httpcore", "httpx", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
