"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helpers for logging lifecycle transitions and acceptance outcomes

Usage:
    from tourmatch.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Request created", extra={"request_id": "REQ-2025-ABC123"})
"""

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID, or None if not set."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter that prefixes every line with the correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def configure_logging(level: str | None = None) -> None:
    """Install the structured formatter on the root logger.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL env var, then INFO.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    root.setLevel(level_name)

    if not any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter(LOG_FORMAT))
        handler.addFilter(CorrelationIdFilter())
        root.addHandler(handler)


def log_lifecycle_transition(
    logger: logging.Logger,
    entity: str,
    entity_id: str,
    from_status: str | None,
    to_status: str,
    **extra: Any,
) -> None:
    """Log a status change of a request, application or booking.

    Args:
        logger: Logger instance
        entity: Entity kind ("request", "application", "booking")
        entity_id: ID of the entity that changed
        from_status: Previous status (None on creation)
        to_status: New status
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "entity": entity,
        "entity_id": entity_id,
        "from_status": from_status,
        "to_status": to_status,
    }
    context.update(extra)

    msg_parts = [f"{entity.capitalize()} {entity_id}: {from_status or 'new'} -> {to_status}"]
    for key, value in extra.items():
        msg_parts.append(f"{key}={value}")

    logger.info(" | ".join(msg_parts), extra=context)


def log_acceptance_event(
    logger: logging.Logger,
    request_id: str,
    application_id: str,
    result: str,
    *,
    booking_id: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log an outcome of the acceptance transaction.

    Args:
        logger: Logger instance
        request_id: Request being resolved
        application_id: Application being accepted
        result: "committed", "rejected" (refused before any write) or
            "conflict" (the transaction was cancelled by a condition)
        booking_id: Booking created on commit
        error: Error code or reason for rejected/conflict outcomes
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "request_id": request_id,
        "application_id": application_id,
        "result": result,
    }
    if booking_id:
        context["booking_id"] = booking_id
    if error:
        context["error"] = error
    context.update(extra)

    msg_parts = [f"Acceptance: {request_id}/{application_id}", f"result={result}"]
    if booking_id:
        msg_parts.append(f"booking={booking_id}")
    if error:
        msg_parts.append(f"error={error}")

    message = " | ".join(msg_parts)

    if result == "committed":
        logger.info(message, extra=context)
    else:
        logger.warning(message, extra=context)
