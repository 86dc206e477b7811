"""Structured logging helpers for AmberDB."""

from __future__ import annotations

import logging
import os
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterable, Iterator, Optional, Sequence

ROOT_LOGGER = "amberdb"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(correlation_id)s | %(name)s | %(message)s"
SLOW_QUERY_ENV_VAR = "AMBERDB_SLOW_QUERY_MS"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_SECRET_TOKENS = ("password", "secret", "token")


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def configure_logging(level: int = logging.INFO) -> None:
    """
    Attach one stream handler to the ``amberdb`` logger; repeated calls are no-ops.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    logger.addHandler(handler)
    logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_correlation_id(value: Optional[str] = None) -> str:
    token = value or str(uuid.uuid4())
    _correlation_id.set(token)
    return token


def get_correlation_id() -> str:
    return _correlation_id.get() or set_correlation_id()


def redact_params(params: Sequence[Any]) -> list[Any]:
    """
    Mask string parameters that look like credentials before they reach a log line.
    """
    return [
        "***" if isinstance(value, str) and any(token in value.lower() for token in _SECRET_TOKENS) else value
        for value in params
    ]


@contextmanager
def time_call(
    name: str,
    logger: logging.Logger,
    *,
    sql: str | None = None,
    params: Iterable[Any] | None = None,
    threshold_ms: int = 100,
) -> Iterator[None]:
    """
    Log how long the block took: WARNING at or above ``threshold_ms``, else DEBUG.
    """
    start = time.monotonic()
    outcome = "failed after"
    try:
        yield
        outcome = "took"
    finally:
        elapsed_ms = (time.monotonic() - start) * 1000
        level = logging.WARNING if elapsed_ms >= threshold_ms else logging.DEBUG
        extra = {"sql": sql, "params": params, "elapsed_ms": elapsed_ms}
        logger.log(level, "%s %s %.2fms", name, outcome, elapsed_ms, extra=extra)


def resolve_slow_query_ms(default: int, override: int | None = None) -> int:
    """
    Pick the slow-query warning threshold: explicit override, then environment, then default.
    """
    if override is not None:
        return override
    value = os.getenv(SLOW_QUERY_ENV_VAR)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(f"{ROOT_LOGGER}.utils").warning(
            "Ignoring non-integer %s=%r", SLOW_QUERY_ENV_VAR, value
        )
        return default
