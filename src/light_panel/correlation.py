"""
Correlation ID tracking for log lines emitted while handling one intent.

Uses contextvars so the ID follows an intent across awaits
(dispatcher -> coordinator -> publish).
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "ensure_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)


def _new_correlation_id() -> str:
    """Return a new UUID4 hex correlation ID."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    _ = _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Generator[str]:
    """
    Context manager for correlation ID scope.

    Generates an ID when none is given and restores the previous ID on exit.

    Example:
        with correlation_context() as corr_id:
            await dispatcher.select_solid_scene("Warm White")
    """
    previous_id = get_correlation_id()

    if correlation_id is None:
        correlation_id = _new_correlation_id()

    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        set_correlation_id(previous_id)


def ensure_correlation_id() -> str:
    """Return the current correlation ID, generating one if unset."""
    current_id = get_correlation_id()
    if current_id is None:
        current_id = _new_correlation_id()
        set_correlation_id(current_id)
    return current_id
