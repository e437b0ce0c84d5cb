"""Structured logging configuration.

JSON log lines carry trace and request correlation fields so a single
signature request can be followed from the HTTP handler through rendering,
persistence and each outbound email.
"""

import json
import logging
from datetime import datetime, timezone

from core.logging_utils import sanitize_email

CONTEXT_FIELDS = (
    "trace_id",
    "request_id",
    "recipient_id",
    "stage",
    "error_code",
    "service",
    "duration_ms",
    "http_status",
    "order_number",
    "sent_count",
    "attempted_count",
)

# Context keys whose values are recipient addresses.
MASKED_EMAIL_FIELDS = ("recipient_email", "sender_email")

QUIET_LOGGERS = ("urllib3", "httpx", "httpcore", "asyncio", "PIL")

PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(trace_id)s %(message)s"


def _utc_timestamp(created: float) -> str:
    return datetime.fromtimestamp(created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def record_context(record: logging.LogRecord) -> dict:
    """Collect correlation fields set through ``extra`` on a record."""
    context = {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}
    for key in MASKED_EMAIL_FIELDS:
        if hasattr(record, key):
            context[key] = sanitize_email(getattr(record, key))
    return context


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Example:
        >>> logger.info("Email sent", extra={"request_id": "abc", "order_number": 2})
        # {"timestamp": "...Z", "level": "INFO", "message": "Email sent",
        #  "request_id": "abc", "order_number": 2, ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            **record_context(record),
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, ensure_ascii=False, default=str)


class PlainFormatter(logging.Formatter):
    """Human-readable lines for local runs; shows the trace id when known."""

    def __init__(self):
        super().__init__(PLAIN_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "trace_id"):
            record.trace_id = "-"
        return super().format(record)


def configure_structured_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON lines when True, plain text otherwise
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter() if json_format else PlainFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
