"""Structured JSON logging for SteamHistory."""

import json
import logging
import sys
from datetime import datetime, timezone

# Attributes passed through ``extra=`` that end up in the JSON line.
_CONTEXT_FIELDS = ("app_id", "operation", "total", "succeeded", "failed", "cache_key")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Configure structured logging for the collector, classifier and API."""
    root = logging.getLogger("steamhistory")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.propagate = False
    # Scheduled jobs may call this more than once per process
    if any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger scoped under steamhistory."""
    return logging.getLogger(f"steamhistory.{name}")
