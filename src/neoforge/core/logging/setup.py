"""Centralized logging setup with Logfire integration.

Logfire itself is configured via environment variables (LOGFIRE_TOKEN,
LOGFIRE_SERVICE_NAME, LOGFIRE_ENVIRONMENT); this module only wires structlog
and the standard library into it.
"""

import logging
import sys

import logfire
import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.types import EventDict, Processor, WrappedLogger
from structlog.typing import FilteringBoundLogger


def add_error_type(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Record the class name of an attached ``error`` so Logfire can group on it."""
    if "error" in event_dict and not isinstance(event_dict["error"], str):
        event_dict["error_type"] = type(event_dict["error"]).__name__
    return event_dict


def setup_logging(level: str | int | None = None, colors: bool = True) -> None:
    """Set up structlog and standard library logging with the Logfire processor.

    Args:
        level: Minimum log level; defaults to ``settings.log_level``
        colors: Whether the console renderer emits ANSI colors
    """
    if level is None:
        from neoforge.core.config import settings

        level = settings.log_level
    numeric_level = logging.getLevelName(level.upper()) if isinstance(level, str) else level

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.FILENAME,
                CallsiteParameter.LINENO,
                CallsiteParameter.FUNC_NAME,
            ]
        ),
        add_error_type,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        # Must come before the final renderer
        logfire.StructlogProcessor(),
        structlog.dev.ConsoleRenderer(colors=colors),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib records (the neo4j driver logs through it) through the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=colors),
        foreign_pre_chain=processors[:-2],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structured logger instance.

    Args:
        name: The name of the logger (usually __name__)

    Returns:
        A structlog logger; uses structlog defaults until setup_logging() runs
    """
    return structlog.get_logger(name)
