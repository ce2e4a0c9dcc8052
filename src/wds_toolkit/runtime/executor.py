"""Bounded-concurrency execution of independent units of work."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def map_limit(
    items: Iterable[T],
    limit: int,
    worker: Callable[[T], Awaitable[R]],
) -> list[R]:
    """Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    Items are pulled from ``items`` only when a slot frees up, so lazy
    iterables stay lazy. Results come back in input order.

    The first exception raised by a worker (or by the iterable) stops any new
    work from being scheduled; workers already running are allowed to finish
    and the exception is then re-raised to the caller.
    """

    if limit < 1:
        msg = "limit must be at least 1"
        raise ValueError(msg)

    iterator = enumerate(items)
    results: dict[int, R] = {}
    failure: BaseException | None = None

    async def _drain() -> None:
        nonlocal failure
        while failure is None:
            try:
                index, item = next(iterator)
            except StopIteration:
                return
            except Exception as exc:
                failure = failure or exc
                return
            try:
                results[index] = await worker(item)
            except Exception as exc:
                failure = failure or exc
                return

    await asyncio.gather(*(_drain() for _ in range(limit)))
    if failure is not None:
        raise failure
    return [results[index] for index in sorted(results)]


__all__ = ["map_limit"]
