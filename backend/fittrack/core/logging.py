"""
Structured logging configuration.
Designed for easy debugging without exposing user data.
"""
import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Generator

import structlog
from structlog.types import Processor

from fittrack.core.config import settings


def setup_logging() -> None:
    """Configure structured logging for the application."""

    # Common processors
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.LOG_FORMAT == "json":
        # JSON format for production
        renderer = structlog.processors.JSONRenderer()
    else:
        # Console format for development
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure root logger
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def track_computation(
    logger: structlog.stdlib.BoundLogger,
    operation: str,
    **context: Any
) -> Generator[None, None, None]:
    """
    Log how long an analytics computation took.

    Usage:
        with track_computation(logger, "month_heatmap", user_id=uid):
            data = await self._build_month(...)

    On failure the error type is logged and the exception re-raised.
    """
    start_time = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.warning(
            "Computation failed",
            operation=operation,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            success=False,
            error_type=type(e).__name__,
            **context
        )
        raise

    logger.info(
        "Computation finished",
        operation=operation,
        duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        success=True,
        **context
    )
