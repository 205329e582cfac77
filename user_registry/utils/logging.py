"""
Logging setup shared by the registry CLI, lifecycle controller and store.

Records go to stderr so command output on stdout stays clean. Console lines
are plain text; with `LOG_JSON=true` each record becomes one JSON object that
carries every `extra=` field (`record_id`, `email`, `rows`, ...) as a
top-level key. The aiosqlite driver logs every statement at DEBUG, so its
logger is held at WARNING regardless of the registry level.

    configure_logging(level="INFO", json_logs=True)
    get_logger(__name__).info("Inserted user", extra={"record_id": 7})
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes present on every LogRecord; anything else arrived via `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}

_QUIET_LOGGERS = ("aiosqlite",)


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as JSON string."""
    payload: Dict[str, Any] = {
        "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(
        (key, value)
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    )
    # Older call sites pass a single `extra` dict attribute.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str, ensure_ascii=False)


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def _logging_config(level: str, formatter: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
                "datefmt": "%H:%M:%S",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "level": level,
                "stream": "ext://sys.stderr",
            }
        },
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Install the registry's root handler.

    Parameters
    ----------
    level : str
        Level name for the root logger, e.g. "DEBUG" or "WARNING".
    json_logs : bool
        Emit JSON lines instead of the console format.
    """
    logging.config.dictConfig(_logging_config(level.upper(), "json" if json_logs else "console"))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter"]
