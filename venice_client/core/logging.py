"""Structured logging configuration for the client library.

The library itself only obtains loggers through :func:`get_logger`; it never
configures handlers at import time. Applications that want the library's
output formatted consistently can call :func:`setup_logging`, which installs
a text, structured or JSON formatter for the ``venice_client`` logger tree.
"""

import json
import logging
import logging.config
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from venice_client.core.config import settings

LOGGER_NAME = "venice_client"

# Per-request fields passed through ``extra=`` by the transport and retry loop
REQUEST_CONTEXT_FIELDS = (
    "request_id",
    "method",
    "endpoint",
    "status_code",
    "attempt",
    "duration_ms",
)

_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_STRUCTURED_FORMAT = (
    _TEXT_FORMAT
    + " - method=%(method)s endpoint=%(endpoint)s status=%(status_code)s attempt=%(attempt)s"
)

# Attributes every LogRecord carries; anything else on a record came from ``extra=``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Request context fields are emitted at the top level when set; any other
    ``extra=`` values are grouped under ``"extra"``.
    """

    CONTEXT_FIELDS = REQUEST_CONTEXT_FIELDS

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra = {}
        for key, value in vars(record).items():
            if key in self.CONTEXT_FIELDS:
                if value is not None:
                    entry[key] = value
            elif key not in _RECORD_ATTRS:
                extra[key] = value
        if extra:
            entry["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Default missing request context fields to None.

    Lets the structured text format reference them on every record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for name in REQUEST_CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, None)
        return True


def _formatter_config(log_format: str) -> Dict[str, Any]:
    if log_format == "json":
        return {"()": f"{__name__}.JSONFormatter"}
    if log_format == "structured":
        return {"format": _STRUCTURED_FORMAT}
    return {"format": _TEXT_FORMAT}


def get_logging_config(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a ``dictConfig`` mapping for the library's loggers.

    Args:
        log_level: Overrides ``settings.log_level``
        log_format: Overrides ``settings.log_format`` (text, structured or json)
    """
    log_format = (log_format or settings.log_format).lower()
    log_level = (log_level or settings.log_level).upper()
    formatter_name = log_format if log_format in ("json", "structured") else "standard"

    handler = {
        "class": "logging.StreamHandler",
        "stream": sys.stderr,
        "level": log_level,
        "formatter": formatter_name,
        "filters": ["context"],
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {formatter_name: _formatter_config(log_format)},
        "filters": {"context": {"()": f"{__name__}.ContextFilter"}},
        "handlers": {"console": handler},
        "loggers": {
            LOGGER_NAME: {"level": log_level, "handlers": ["console"], "propagate": False},
            # httpx logs every request at INFO
            "httpx": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure logging for the client library."""
    logging.config.dictConfig(get_logging_config(log_level, log_format))


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    return logging.getLogger(name)


def get_log_context(
    request_id: Optional[str] = None,
    method: Optional[str] = None,
    endpoint: Optional[str] = None,
    status_code: Optional[int] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build an ``extra=`` mapping, leaving out values that are None.

    Example:
        >>> logger.debug(
        ...     "GET models -> 200",
        ...     extra=get_log_context(method="GET", endpoint="models", status_code=200),
        ... )
    """
    context = {
        "request_id": request_id,
        "method": method,
        "endpoint": endpoint,
        "status_code": status_code,
        **extra,
    }
    return {key: value for key, value in context.items() if value is not None}
