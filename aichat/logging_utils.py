"""
Centralized logging and error classification utilities for the chat client.

This module provides decorators and helper functions to standardize logging
around backend calls, reducing boilerplate and ensuring consistent error
reporting.

Features:
- Structured logging with contextual information
- Error classification into translation codes
- Performance timing
"""

from __future__ import annotations

import functools
import json
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog

from .exceptions import DEFAULT_ERROR_CODE, ChatError

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Type variables for generic decorators
P = ParamSpec("P")
T = TypeVar("T")
AsyncCallable = Callable[P, Awaitable[T]]

logger = structlog.get_logger(__name__)


def configure_logging(level: str | int = "INFO") -> None:
    """Route stdlib logging, and with it structlog, at the given level."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger().setLevel(level)


def classify_error(error: Exception) -> tuple[str, str]:
    """
    Classify an error and return the translation code and a log category.

    Args:
        error: The exception to classify

    Returns:
        Tuple of (error_code, error_category)
    """
    if isinstance(error, ChatError):
        return error.error_code, "chat_error"
    if isinstance(error, httpx.TimeoutException):
        return DEFAULT_ERROR_CODE, "timeout_error"
    if isinstance(error, httpx.HTTPError | ConnectionError | OSError):
        return DEFAULT_ERROR_CODE, "connection_error"
    if isinstance(error, json.JSONDecodeError):
        return DEFAULT_ERROR_CODE, "decode_error"
    if isinstance(error, ValueError | TypeError | KeyError):
        return DEFAULT_ERROR_CODE, "parameter_error"
    return DEFAULT_ERROR_CODE, "unknown_error"


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


def _error_log_data(error: Exception) -> dict[str, Any]:
    error_code, error_category = classify_error(error)
    return {
        "error_type": type(error).__name__,
        "error_category": error_category,
        "error_code": error_code,
        "error_message": str(error),
    }


def log_operation(
    operation: str,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """
    Decorator for logging async operations with structured context.

    Args:
        operation: Description of the operation being performed

    Returns:
        Decorated function with logging
    """
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            operation_logger = logger.bind(operation=operation, function=func.__name__)
            operation_logger.info("Operation started")
            start_time = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                operation_logger.error(
                    "Operation failed",
                    duration_ms=_elapsed_ms(start_time),
                    **_error_log_data(e),
                )
                raise

            operation_logger.info(
                "Operation completed successfully", duration_ms=_elapsed_ms(start_time)
            )
            return result

        return wrapper
    return decorator


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
):
    """
    Async context manager for operation logging.

    Args:
        operation: Description of the operation
        context: Additional context for logging

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(operation=operation, **(context or {}))
    operation_logger.debug("Operation started")
    start_time = time.perf_counter()

    try:
        yield operation_logger
    except Exception as e:
        operation_logger.error(
            "Operation failed", duration_ms=_elapsed_ms(start_time), **_error_log_data(e)
        )
        raise

    operation_logger.debug(
        "Operation completed successfully", duration_ms=_elapsed_ms(start_time)
    )
