"""
Structured logging framework for tickflake.

Generators and the wait helper log through structlog so embedding services
get key/value events (epoch, segments, wait estimates) instead of prose.
"""

import logging
import os
import sys

import structlog


def is_production() -> bool:
    """
    Determine if running in production environment.

    Checks ENVIRONMENT environment variable. Returns True if 'production', False otherwise.
    Defaults to False (development) if not set.
    """
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


def configure_logging(
    *,
    json_output: bool | None = None,
    log_level: str = "INFO",
) -> None:
    """
    Configure structured logging for the application.

    Args:
        json_output: If True, output JSON logs (for production).
                    If False, output human-readable console logs (for development).
                    If None, decided by the ENVIRONMENT variable.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    if json_output is None:
        json_output = is_production()

    level = getattr(logging, log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )

    # filter_by_level first so retry chatter below the level costs nothing
    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.ExceptionRenderer(),
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)
