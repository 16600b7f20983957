"""Logging setup for node execution.

Outside development every record is written as one JSON object per line so
that per-item failures can be searched by node, item index and error code.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from s3vector_nodes.config import Environment, get_settings

# Loggers that are chatty at DEBUG level, mostly per-request wire traces.
QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "httpcore", "uvicorn.access")

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "file": f"{record.pathname}:{record.lineno}",
            "function": record.funcName,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if extra := _extra_fields(record):
            entry["extra"] = extra
        return json.dumps(entry, default=str, ensure_ascii=False)


class DevFormatter(logging.Formatter):
    """Single-line console format for local runs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%H:%M:%S",
        )


def setup_logging(
    level: str | None = None,
    json_output: bool | None = None,
) -> logging.Logger:
    """Install a single stdout handler on the root logger.

    Args:
        level: Level name; falls back to ``LOG_LEVEL``.
        json_output: Force the formatter; by default JSON is used everywhere
            except the development environment.

    Returns:
        The root logger.
    """
    settings = get_settings()
    numeric_level = logging.getLevelName((level or settings.log_level).upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    if json_output is None:
        json_output = settings.environment != Environment.DEVELOPMENT

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else DevFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, normally called with ``__name__``."""
    return logging.getLogger(name)
