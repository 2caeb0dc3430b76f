"""Structured JSON logging with per-request correlation ids"""
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LOGGER_NAME = "athletics_api"

# Set by MonitoringMiddleware for the lifetime of one request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes passed through ``extra=`` that end up in the JSON line
_EXTRA_FIELDS = ("request_id", "user_id", "token_uuid", "action", "reason", "path", "method")


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


class RequestIdFilter(logging.Filter):
    """Stamp records with the id of the request being served, if any"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            request_id = request_id_var.get()
            if request_id is not None:
                record.request_id = request_id
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (field, _jsonable(getattr(record, field)))
            for field in _EXTRA_FIELDS
            if hasattr(record, field)
        )

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Route the application logger to stdout as JSON lines"""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    logger.handlers = [handler]

    return logger


logger = setup_logging()
