# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging configuration using structlog.

Logs are rendered as JSON in production and as colored console output in
development. Service modules log through the standard library
(logging.getLogger(__name__)); those records are routed through the same
structlog processor chain, so request context bound with bind_context
(request_id, actor_id) shows up on every line.

Example:
    >>> from src.utils.logging import setup_logging, get_logger
    >>> from src.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> logger = get_logger(__name__)
    >>> logger.info("Registration created", registration_id="123")
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from src.core.config.settings import Settings

_NOISY_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "sqlalchemy",
    "asyncio",
    "apscheduler",
    "aiosqlite",
)


def setup_logging(settings: "Settings") -> None:
    """Configure structured logging for the application.

    Sets up structlog with appropriate processors based on environment:
    - Development: Colored console output with pretty formatting
    - Production: JSON output for log aggregation

    Args:
        settings: Application settings containing log_level and debug flag.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development or settings.debug:
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib records through the structlog chain
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("src").setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        A bound structlog logger instance.
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Bind context variables to all subsequent log calls in this context.

    Args:
        **kwargs: Key-value pairs to bind to the logging context.

    Example:
        >>> bind_context(request_id="abc-123", actor_id="user-456")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables.

    Called at the end of request processing to prevent context leakage
    between requests.
    """
    structlog.contextvars.clear_contextvars()
