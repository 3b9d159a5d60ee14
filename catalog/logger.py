"""
Structured logging setup.
"""
import logging
import sys
import json
from datetime import datetime, timezone

from catalog.config import config


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Context passed as extra={"context": {...}}
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            log_data.update(context)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logger(level: str = None) -> logging.Logger:
    """Configure structured logging on the root logger."""
    root = logging.getLogger()
    root.setLevel((level or config.LOG_LEVEL).upper())

    # Console handler with JSON formatting
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredFormatter())

    # Remove existing handlers
    root.handlers.clear()
    root.addHandler(console_handler)

    return logging.getLogger("catalog")


# Global logger instance
logger = setup_logger()
