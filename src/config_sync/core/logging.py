"""
Logging utilities for config sync.

Provides human-readable and JSON-structured formatters that carry the
sync context fields (sync_id, operation, config_key) when present.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional


CONTEXT_FIELDS = ("sync_id", "operation", "config_key")


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.

    Each log line includes the standard fields (timestamp, level, message,
    logger) and the sync context fields passed via ``extra``.
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with sync context.

    Format: TIMESTAMP [LEVEL] LOGGER - MESSAGE [sync_id=X config_key=Y]
    """

    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
        else:
            fmt = "[%(levelname)s] %(name)s - %(message)s"
        super().__init__(fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        context_parts = []
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                context_parts.append(f"{field}={value}")

        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def configure_logging(
    level: int = logging.INFO,
    structured: bool = False,
    include_timestamp: bool = True,
    stream=None,
) -> logging.Handler:
    """
    Configure the ``config_sync`` package logger.

    Args:
        level: Logging level (default: INFO)
        structured: If True, output JSON lines; otherwise human-readable
        include_timestamp: Whether to include timestamps
        stream: Output stream (default: stderr)

    Returns:
        The handler attached to the package logger
    """
    package_logger = logging.getLogger("config_sync")
    package_logger.setLevel(level)

    for existing in list(package_logger.handlers):
        if getattr(existing, "_config_sync_handler", False):
            package_logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    if structured:
        handler.setFormatter(StructuredFormatter(include_timestamp=include_timestamp))
    else:
        handler.setFormatter(HumanReadableFormatter(include_timestamp=include_timestamp))
    handler._config_sync_handler = True
    package_logger.addHandler(handler)

    return handler


def sync_context(sync_id: str, operation: str, config_key: Optional[str] = None) -> dict:
    """Build the ``extra`` mapping for a log call inside a sync."""
    context = {"sync_id": sync_id, "operation": operation}
    if config_key is not None:
        context["config_key"] = config_key
    return context
