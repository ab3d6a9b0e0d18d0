"""
Logging configuration for the court queue with structured logging support.
"""
import json
import logging
import sys
from datetime import datetime
from typing import Any

# Extra fields attached by the engine via logger.info(..., extra={...})
STRUCTURED_FIELDS = [
    "event_type",
    "participant_id",
    "station_id",
    "group_index",
    "reason",
    "count",
]


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs JSON for structured logging to console."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in STRUCTURED_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    def format(self, record: logging.LogRecord) -> str:
        # Build prefix with structured context if available
        prefix_parts = []
        if hasattr(record, "station_id"):
            prefix_parts.append(f"[{record.station_id}]")
        if hasattr(record, "group_index"):
            prefix_parts.append(f"G{record.group_index}")

        prefix = " ".join(prefix_parts)
        if prefix:
            prefix = f"{prefix} "

        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")

        return f"{timestamp} | {record.levelname:<8} | {record.name} | {prefix}{record.getMessage()}"


def setup_logging(level: str = "INFO", json_console: bool = False) -> None:
    """Set up logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_console: If True, output JSON to console; otherwise human-readable
    """
    console_handler = logging.StreamHandler(sys.stdout)
    if json_console:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(HumanReadableFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers and add ours
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def log_transition(
    logger: logging.Logger,
    event_type: str,
    message: str,
    participant_id: str | None = None,
    station_id: str | None = None,
    group_index: int | None = None,
    count: int | None = None,
) -> None:
    """Log an applied engine transition with structured data."""
    extra: dict[str, Any] = {"event_type": event_type}
    if participant_id is not None:
        extra["participant_id"] = participant_id
    if station_id is not None:
        extra["station_id"] = station_id
    if group_index is not None:
        extra["group_index"] = group_index
    if count is not None:
        extra["count"] = count

    logger.info(message, extra=extra)


def log_declined(logger: logging.Logger, operation: str, reason: str) -> None:
    """Log a declined operation. Declines are expected, so DEBUG only."""
    logger.debug(
        f"{operation} declined: {reason}",
        extra={"event_type": "declined", "reason": reason},
    )
