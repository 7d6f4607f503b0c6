"""
Correlation IDs for request tracing.

Each request on the command channel runs in its own scope, so the send,
wait and failure lines of one request share an ID. The telemetry listener
tags its thread once with ensure_correlation_id().

Context variables are per thread: concurrent callers never see each
other's IDs, and a new thread starts with none.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

__all__ = [
    "SHORT_ID_LENGTH",
    "correlation_context",
    "ensure_correlation_id",
    "get_correlation_id",
    "new_correlation_id",
    "short_correlation_id",
]

SHORT_ID_LENGTH = 8

_current_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("tello_correlation_id", default=None)


def new_correlation_id() -> str:
    """Return a fresh ID (UUID4 hex, 32 characters)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    return _current_id.get()


def short_correlation_id() -> str:
    """Leading characters of the current ID, or dashes when none is set."""
    current = _current_id.get()
    return current[:SHORT_ID_LENGTH] if current else "-" * SHORT_ID_LENGTH


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """
    Run the block under ``correlation_id`` (a new ID if None).

    The previous ID, or its absence, is restored on exit.

    Example:
        with correlation_context() as corr_id:
            logger.debug("Sending command")  # tagged with corr_id
    """
    active = correlation_id or new_correlation_id()
    token = _current_id.set(active)
    try:
        yield active
    finally:
        _current_id.reset(token)


def ensure_correlation_id() -> str:
    """Return the current ID, setting a new one first if the context has none."""
    current = _current_id.get()
    if current is None:
        current = new_correlation_id()
        _current_id.set(current)
    return current
