"""
Structured logging for the photoquest media service.

Every record is a structlog event with key/value context. Development
shells get coloured console lines; anywhere else gets one JSON object per
line, which is what the hosting platform indexes. Records carry the
service name so remote backend failures can be filtered across processes.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

SERVICE_NAME = "photoquest-media"

DEVELOPMENT_ENVIRONMENTS = ("development", "dev", "local")


def get_log_level() -> int:
    """Numeric level for LOG_LEVEL; unknown names mean INFO."""
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def is_development_environment() -> bool:
    return os.getenv("ENVIRONMENT", "development").lower() in DEVELOPMENT_ENVIRONMENTS


def add_service_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Stamp every record with the service name and deployment environment."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("environment", os.getenv("ENVIRONMENT", "development"))
    return event_dict


def build_processors(development: bool) -> list[Any]:
    """
    Processor chain shared by the API server and the batch CLI.

    Context bound with ``log_context`` is merged first, so per-file or
    per-request fields reach records emitted deep inside the services.
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if development:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    else:
        processors.append(structlog.processors.JSONRenderer())
    return processors


def configure_structured_logging() -> None:
    """Route structlog through the stdlib root logger on stderr."""
    log_level = get_log_level()
    development = is_development_environment()

    # uvicorn runs with log_config=None, so its records share this handler
    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stderr)
    logging.getLogger().setLevel(log_level)

    structlog.configure(
        processors=build_processors(development),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger("photoquest.logging").info(
        "logging_configured",
        log_level=logging.getLevelName(log_level),
        renderer="console" if development else "json",
    )


def get_logger(name: str = "photoquest") -> Any:
    return structlog.get_logger(name)


def log_performance(operation: str, duration: float, **context: Any) -> None:
    """
    Record how long an operation took.

    Args:
        operation: Short name such as ``remote_upload`` or ``fit_within``
        duration: Elapsed time in seconds
        **context: Sizes, provider and other fields worth correlating
    """
    get_logger("photoquest.performance").info(
        "performance_metric", operation=operation, duration_ms=round(duration * 1000, 1), **context
    )


def log_error(error: Exception, context: dict[str, Any] | None = None) -> None:
    """Emit one ``error_occurred`` record with the traceback attached."""
    get_logger("photoquest.errors").error(
        "error_occurred",
        error_type=type(error).__name__,
        error_message=str(error),
        **(context or {}),
        exc_info=error,
    )


@contextmanager
def log_context(logger_name: str = "photoquest", **context: Any) -> Iterator[Any]:
    """
    Bind context for everything logged inside the block.

    Yields a logger bound to ``context``. The same fields are bound as
    context variables for records from other modules. An exception escaping
    the block is recorded as ``context_exception`` and re-raised.
    """
    bound_logger = get_logger(logger_name).bind(**context)
    with structlog.contextvars.bound_contextvars(**context):
        try:
            yield bound_logger
        except Exception as e:
            bound_logger.error(
                "context_exception", exception_type=type(e).__name__, exception_message=str(e), exc_info=e
            )
            raise
