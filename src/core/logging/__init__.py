"""
Logging configuration module for structured logging.

This module configures the service's logging system using structlog.
It provides structured logging capabilities with JSON formatting for production
and human-readable console output for development.

The logging configuration includes:
- Timestamp formatting
- Log level inclusion and filtering
- Context variables (the request correlation id is bound per request)
- JSON/Console output based on environment
- Output on stderr, leaving stdout to the process owner
"""

import logging
import sys

import structlog


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configures the service's logging system.

    This function sets up structlog with:
    1. Context variables merged into every event
    2. Log level inclusion
    3. ISO format timestamps
    4. JSON formatting for production (when LOG_JSON=True)
    5. Console formatting for development
    6. Standard library logger factory writing to stderr
    7. Logger caching for performance

    Args:
        log_level: Minimum level name, e.g. "INFO".
        json_logs: Render JSON instead of console output.
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Create a singleton logger instance for the service
logger = structlog.get_logger()
