"""Fixed-count, fixed-interval retry around a single remote call."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import AsyncRetrying, retry_if_not_exception_type, stop_after_attempt, wait_fixed

from wds_toolkit.exceptions import ConflictError

T = TypeVar("T")

DEFAULT_RETRY_ATTEMPTS = 5
DEFAULT_RETRY_INTERVAL_MS = 1000

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Invoke an operation up to ``attempts`` times, ``interval_ms`` apart.

    No jitter and no backoff growth. The last error is re-raised unchanged so
    the caller can classify it; a ``ConflictError`` is re-raised on first sight.
    """

    attempts: int = DEFAULT_RETRY_ATTEMPTS
    interval_ms: int = DEFAULT_RETRY_INTERVAL_MS

    def __post_init__(self) -> None:
        if self.attempts < 1:
            msg = "retry attempts must be at least 1"
            raise ValueError(msg)
        if self.interval_ms < 0:
            msg = "retry interval must be non-negative"
            raise ValueError(msg)

    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.interval_ms / 1000),
            retry=retry_if_not_exception_type(ConflictError),
            before_sleep=_log_attempt,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await operation()
        raise AssertionError("unreachable")  # pragma: no cover


def _log_attempt(state: object) -> None:
    outcome = getattr(state, "outcome", None)
    error = outcome.exception() if outcome is not None else None
    logger.debug(
        "attempt %s failed, retrying: %s",
        getattr(state, "attempt_number", "?"),
        error,
    )


async def retry(
    attempts: int,
    interval_ms: int,
    operation: Callable[[], Awaitable[T]],
) -> T:
    """Functional shorthand for ``RetryPolicy(attempts, interval_ms).call``."""

    return await RetryPolicy(attempts=attempts, interval_ms=interval_ms).call(operation)


__all__ = ["DEFAULT_RETRY_ATTEMPTS", "DEFAULT_RETRY_INTERVAL_MS", "RetryPolicy", "retry"]
