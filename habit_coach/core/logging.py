"""Logging and observability configuration using Pydantic Logfire.

All modules use Python's standard logging library (logging.getLogger(__name__)),
and Logfire captures and enriches these logs once configured.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_owner_context(logger, "info", "Habit created", owner_id="u1", habit_id="abc")
"""

import logging

import logfire
from fastapi import FastAPI

from habit_coach.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment."""
    logfire.configure(
        token=settings.logfire_token,
        service_name="habit-coach",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire instrumentation to FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("habit_service.create_habit"):
            ...
    """
    return logfire.span(name)


def log_with_owner_context(
    logger: logging.Logger,
    level: str,
    message: str,
    owner_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message with owner context.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        owner_id: Owner ID to include in context
        **extra: Additional context fields
    """
    context = {"owner_id": owner_id, **extra} if owner_id else extra
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)
