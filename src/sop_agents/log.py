"""Correlation-aware logging on top of the stdlib ``logging`` module.

Request handling binds a correlation id (and, inside capability calls, the
capability name) into context variables. ``CorrelationFilter`` copies them
onto every record so handlers can format or ship them. Context variables are
inherited by asyncio tasks, so concurrent capability calls spawned by the
engine keep the id of the request that started them.
"""

from __future__ import annotations

import logging
import random
import string
import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

ROOT_LOGGER = "sop_agents"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(correlation_id)s] [%(capability)s] %(message)s"

LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_correlation_id: ContextVar[str | None] = ContextVar("sop_agents_correlation_id", default=None)
_capability: ContextVar[str | None] = ContextVar("sop_agents_capability", default=None)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_correlation_id() -> str:
    """Return a fresh id of the form ``req-<epoch ms>-<7 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"req-{int(time.time() * 1000)}-{suffix}"


def current_correlation_id() -> str | None:
    return _correlation_id.get()


def current_capability() -> str | None:
    return _capability.get()


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


@contextmanager
def capability_scope(name: str) -> Iterator[str]:
    token = _capability.set(name)
    try:
        yield name
    finally:
        _capability.reset(token)


class CorrelationFilter(logging.Filter):
    """Stamp ``correlation_id`` and ``capability`` onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = _correlation_id.get() or "-"
        if not hasattr(record, "capability"):
            record.capability = _capability.get() or "-"
        return True


def parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    try:
        return LEVELS[level.lower()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level!r}") from None


def get_logger(name: str) -> logging.Logger:
    """Return a logger carrying the correlation filter.

    The filter sits on the logger rather than a handler so records are
    stamped even when the application installs its own handlers.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationFilter) for f in logger.filters):
        logger.addFilter(CorrelationFilter())
    return logger


def configure_logging(level: str | int = "info") -> logging.Logger:
    """Attach a stderr handler to the package logger and set its level."""
    logger = get_logger(ROOT_LOGGER)
    logger.setLevel(parse_level(level))
    if not any(getattr(h, "_sop_agents", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(CorrelationFilter())
        handler._sop_agents = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
