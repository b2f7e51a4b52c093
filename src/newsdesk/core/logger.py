from __future__ import annotations

import json
import logging
import os
import re
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from rich.logging import RichHandler

# Context variable for correlation ID
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Extra record attributes copied into structured output
_EXTRA_FIELDS = ("event_id", "ticker", "source", "error", "error_type")

# Query-string credentials that httpx echoes back in error messages
_SECRET_PARAM_RE = re.compile(r"(apikey|api_key|token|key)=[^&\s]+", re.IGNORECASE)


def redact_secrets(text: str) -> str:
    """Mask credential query parameters (``token=...``) in a message."""
    return _SECRET_PARAM_RE.sub(lambda m: f"{m.group(1)}=***", text)


def get_correlation_id() -> str:
    """Get the current correlation ID."""
    return _correlation_id.get()


def set_correlation_id(cid: Optional[str] = None) -> str:
    """Set a correlation ID for cycle or request tracing.

    Args:
        cid: Correlation ID to set. If None, generates a new short UUID.

    Returns:
        The correlation ID that was set.
    """
    if cid is None:
        cid = str(uuid.uuid4())[:8]
    _correlation_id.set(cid)
    return cid


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter for production use."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = getattr(record, "correlation_id", "") or get_correlation_id()
        if cid:
            log_data["correlation_id"] = cid

        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ContextFilter(logging.Filter):
    """Filter that stamps the correlation ID on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Set up logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: If True, use JSON structured format (for production)
        log_file: Optional file path to write JSON logs to

    Examples:
        # Development with rich console output
        setup_logging("DEBUG")

        # Production with JSON output
        setup_logging("INFO", json_output=True)
    """
    if os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes"):
        json_output = True

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    context_filter = ContextFilter()

    if json_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler = RichHandler(
            rich_tracebacks=True,
            show_time=True,
            show_path=False,
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.addFilter(context_filter)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        file_handler.addFilter(context_filter)
        root.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``newsdesk`` namespace.

    Args:
        name: Component name (e.g., "rss", "pipeline", "store")
    """
    return logging.getLogger(f"newsdesk.{name}")


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    error: BaseException,
    level: int = logging.ERROR,
    **context: Any,
) -> None:
    """Log an error with additional context fields.

    Used by the fail-soft paths: the error is recorded, never re-raised.

    Args:
        logger: Logger instance
        message: Error message
        error: Exception that occurred
        level: Log level for the record
        **context: Additional context fields (source, ticker, event_id, ...)
    """
    error_text = redact_secrets(str(error))
    extra = {"error": error_text, "error_type": type(error).__name__}
    extra.update(context)

    suffix = " ".join(f"{k}={v}" for k, v in context.items() if v is not None)
    text = f"{message}: {type(error).__name__}: {error_text}"
    if suffix:
        text = f"{text} ({suffix})"

    logger.log(level, text, extra=extra)
