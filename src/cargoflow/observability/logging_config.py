"""Structured JSON logging configuration.

Provides centralized logging setup with document/run correlation and JSON
formatting.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from .correlation import get_document_id, get_run_id

# Structured fields passed via `extra=` that are copied into JSON output
EXTRA_FIELDS = (
    "strategy",
    "tier",
    "provider",
    "model",
    "attempt",
    "status",
    "confidence",
    "connector",
    "key",
    "dropped_fields",
    "errors",
    "strategies",
    "connectors",
    "vehicle_aliases",
    "port_aliases",
    "vehicles",
    "ports",
)


class DocumentIDFilter(logging.Filter):
    """Add document_id and run_id to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation attributes to log record.

        Returns:
            bool: Always True (don't filter out records)
        """
        record.document_id = get_document_id()
        record.run_id = get_run_id()
        return True


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "document_id": getattr(record, "document_id", "no-document"),
            "run_id": getattr(record, "run_id", "no-run"),
            "logger": record.name,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["error"] = str(record.exc_info[1])
            log_data["traceback"] = self.formatException(record.exc_info)

        for field_name in EXTRA_FIELDS:
            if hasattr(record, field_name):
                log_data[field_name] = getattr(record, field_name)

        return json.dumps(log_data, default=str)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Configure application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, use JSON formatter; otherwise use simple format
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(document_id)s - %(name)s.%(funcName)s - %(message)s'
        )

    handler.setFormatter(formatter)
    handler.addFilter(DocumentIDFilter())
    root_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
