"""Structured logging for the STACKIT Cluster API Operator.

Every record, kopf's and the kubernetes client's included, is written to
stdout as one JSON document per line, enriched with the reconcile context
and scrubbed of credentials.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .utils.context import get_context_dict
from .utils.errors import sanitize_error_message

# Keys whose values never reach the log stream
SECRET_FIELDS = {"token", "stackit_token", "password", "data"}

# LogRecord attribute holding the fields passed to log_resource_event
_RECORD_FIELDS = "fields"


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_error_message(record.getMessage()),
        }
        log_data.update(get_context_dict(getattr(record, _RECORD_FIELDS, None)))
        if record.exc_info:
            log_data["exception"] = sanitize_error_message(self.formatException(record.exc_info))
        return json.dumps(sanitize_secrets(log_data), default=str)


def setup_structured_logging(level: int = logging.INFO) -> None:
    """Route all logging through the JSON formatter."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    fields = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
    }
    fields.update(kwargs)
    logger.log(level, message, extra={_RECORD_FIELDS: fields})


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Remove secret fields from log data."""
    sanitized = log_data.copy()
    for field in SECRET_FIELDS:
        if field in sanitized:
            sanitized[field] = "***REDACTED***"
    return sanitized
