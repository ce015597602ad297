"""Call ID logging context for tracing one caller across turns.

Every webhook turn sets the call ID before touching the session, so log
lines from the store, the classifier and the engine can be grouped per
call even when many calls are handled in parallel.

Usage:
    from delivery_agent.logging_context import call_scope, get_call_logger

    logger = get_call_logger(__name__)
    with call_scope("CA123"):
        logger.info("Processing turn")  # record.call_id == "CA123"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

_call_id: ContextVar[str] = ContextVar("call_id", default="NO_CALL_ID")


def set_call_id(call_id: str) -> None:
    """Set the call ID for the current context."""
    _call_id.set(call_id)


def get_call_id() -> str:
    """Retrieve the current call ID."""
    return _call_id.get()


@contextmanager
def call_scope(call_id: str) -> Iterator[None]:
    """Bind ``call_id`` for the duration of one turn, restoring the previous value after."""
    token = _call_id.set(call_id)
    try:
        yield
    finally:
        _call_id.reset(token)


class CallIdFilter(logging.Filter):
    """Injects call_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.call_id = _call_id.get()  # type: ignore[attr-defined]
        return True


def get_call_logger(name: str) -> logging.Logger:
    """Return a logger with the CallIdFilter attached.

    The filter adds ``call_id`` to each record so formatters can
    include ``%(call_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CallIdFilter) for f in logger.filters):
        logger.addFilter(CallIdFilter())
    return logger
