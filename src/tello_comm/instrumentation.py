"""
Performance instrumentation and timing for network operations.

Provides a decorator for timing blocking operations with a configurable
threshold and an on/off toggle.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar

__all__ = [
    "measure_time",
    "timed",
]

P = ParamSpec("P")
T = TypeVar("T")


def measure_time(start_time: float) -> float:
    """
    Calculate elapsed time in milliseconds.

    Args:
        start_time: Start time from time.perf_counter()

    Returns:
        Elapsed time in milliseconds
    """
    return (time.perf_counter() - start_time) * 1000


def timed(operation_name: str | None = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator for timing synchronous functions with threshold warnings.

    Can be disabled via the TELLO_PERF_TRACKING environment variable.

    Args:
        operation_name: Name for the operation (defaults to function name)

    Example:
        @timed("connect")
        def connect(self, ip):
            ...
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            from tello_comm.const import (  # noqa: PLC0415
                TELLO_PERF_THRESHOLD_MS,
                TELLO_PERF_TRACKING,
            )
            from tello_comm.logging_abstraction import get_logger  # noqa: PLC0415

            if not TELLO_PERF_TRACKING:
                return func(*args, **kwargs)

            logger = get_logger(__name__)
            op_name = operation_name or func.__name__

            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed_ms = measure_time(start_time)
                _log_timing(logger, op_name, elapsed_ms, TELLO_PERF_THRESHOLD_MS)

        return wrapper

    return decorator


def _log_timing(logger: Any, operation_name: str, elapsed_ms: float, threshold_ms: int) -> None:
    """Log timing at warning level above the threshold, debug otherwise."""
    if elapsed_ms > threshold_ms:
        logger.warning(
            "[%s] completed in %.1fms (threshold: %dms)",
            operation_name,
            elapsed_ms,
            threshold_ms,
            extra={
                "operation": operation_name,
                "duration_ms": round(elapsed_ms, 2),
                "threshold_ms": threshold_ms,
                "exceeded_threshold": True,
            },
        )
    else:
        logger.debug(
            "[%s] completed in %.1fms",
            operation_name,
            elapsed_ms,
            extra={
                "operation": operation_name,
                "duration_ms": round(elapsed_ms, 2),
                "threshold_ms": threshold_ms,
                "exceeded_threshold": False,
            },
        )
