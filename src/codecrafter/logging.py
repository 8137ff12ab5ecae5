"""Structured logging configuration for CodeCrafter.

This module configures structlog with support for:
- JSON and console output formats
- File rotation based on size
- Correlation IDs for tracing one request across workflow steps
- Actor context binding so every log line names who acted
- Domain value rendering: UUIDs, status enums and datetimes in event
  fields are written as plain strings, also inside nested dicts and lists

The logging system integrates structlog with Python's stdlib logging
for handlers (file rotation), while using structlog exclusively for
actual log emission.

Example usage:
    >>> from codecrafter.config import LoggingConfig
    >>> from codecrafter.logging import setup_logging, get_logger, bind_actor_context
    >>>
    >>> config = LoggingConfig(level="INFO", format="json", file=Path("app.log"))
    >>> setup_logging(config)
    >>>
    >>> logger = get_logger(__name__)
    >>> bind_actor_context(actor_id="9b1d...", role="admin")
    >>> logger.info("account_approved", user_id="42c7...")
"""

from __future__ import annotations

import contextvars
import enum
import logging
import logging.handlers
import sys
import uuid
from datetime import datetime
from typing import Any

import structlog

from codecrafter.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add correlation_id to log event if set in context.

    Args:
        logger: Logger instance (unused, required by structlog protocol)
        method_name: Log method name (unused, required by structlog protocol)
        event_dict: Current event dictionary to augment

    Returns:
        Event dictionary with correlation_id added if available
    """
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID for current context.

    Args:
        correlation_id: Correlation ID string or None to clear
    """
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return _correlation_id.get()


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    return value


def render_domain_values(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Render record ids, status enums and timestamps as plain strings.

    Without this the JSON renderer falls back to repr(), which turns a
    project id into ``"UUID('...')"`` and a status into
    ``"<ProjectStatus.open: 'Open'>"``.
    """
    for key, value in event_dict.items():
        if key != "exc_info":
            event_dict[key] = _plain(value)
    return event_dict


def bind_actor_context(actor_id: str, role: str) -> None:
    """Bind the acting user to all subsequent logs in this async context.

    Notification tasks spawned afterwards inherit a copy of the context,
    so their log lines carry the actor that triggered them.

    Args:
        actor_id: Identifier of the user performing the operation
        role: Role of the acting user (client, developer, admin)
    """
    structlog.contextvars.bind_contextvars(actor_id=actor_id, actor_role=role)


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog with the given configuration.

    This function sets up the complete logging pipeline including:
    - JSON or console rendering based on config.format
    - File rotation if config.file is specified
    - Timestamp, log level, and logger name processors
    - Correlation ID processor
    - Domain value rendering ahead of the renderer

    Args:
        config: Logging configuration from CodecrafterConfig
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)

        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            filename=config.file,
            maxBytes=config.rotation_size_mb * 1024 * 1024,
            backupCount=config.retention_count,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:  # console
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            render_domain_values,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger instance
    """
    return structlog.get_logger(name)
