"""Structured Logging: JSON formatter and setup for production observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (correlation_id, request_type, failure_kind, event_type, subscriber)
      surfaced when present
    - JSON format in production, human-readable in development

Design Decisions:
    - setup_logging called once on startup via lifespan
    - log_domain_event is a plain subscriber: audit logging rides the same bus as
      every other consumer
"""

import json
import logging
from datetime import datetime, timezone

from usecase_core.core.events import DomainEvent

_EXTRA_KEYS = (
    "correlation_id", "request_type", "failure_kind", "event_type", "subscriber",
    "path", "status_code",
)

audit_logger = logging.getLogger("usecase_core.events")


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Configure logging for the application. Returns the installed handler."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler


def log_domain_event(event: DomainEvent) -> None:
    """Audit subscriber: one INFO line per delivered domain event."""
    audit_logger.info(
        f"{event.event_type} {json.dumps(dict(event.payload), default=str)}",
        extra={"event_type": event.event_type},
    )
