"""Shared concurrency primitives for the ingestion pipeline.

Two patterns are exposed:

1. **throttled_gather** -- ``asyncio.gather`` with every awaitable wrapped
   in a semaphore acquire/release.  The local embedding provider uses it to
   fan out one request per text while capping in-flight calls at the batch
   size.

2. **run_worker_pool** -- a fixed-size worker pool draining a queue of
   work items.  A worker picks up the next item as soon as it finishes the
   previous one (no wave synchronisation).  After the first failure no new
   items are dequeued; items already in flight run to completion and the
   first error is re-raised once the pool has drained.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

import structlog

from studyrag.utils.logging import get_logger

_T = TypeVar("_T")
_R = TypeVar("_R")

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Caps how many of *coros* execute at once.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


async def run_worker_pool(
    items: Sequence[_T],
    worker: Callable[[_T], Awaitable[_R]],
    concurrency: int,
    logger: structlog.BoundLogger | None = None,
) -> list[_R]:
    """Process *items* with at most *concurrency* calls to *worker* in flight.

    Parameters
    ----------
    items:
        Work items, dispatched in order.
    worker:
        Async callable applied to each item.
    concurrency:
        Number of pool workers.  Must be at least 1.
    logger:
        Optional structured logger for the stop-on-error warning.

    Returns
    -------
    list[_R]
        Worker results in the same order as *items*.

    Raises
    ------
    ValueError
        If *concurrency* is less than 1.
    BaseException
        The first exception raised by *worker*, after in-flight items
        have finished.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")
    if logger is None:
        logger = _logger

    queue: asyncio.Queue[tuple[int, _T]] = asyncio.Queue()
    for position, item in enumerate(items):
        queue.put_nowait((position, item))

    results: list[_R | None] = [None] * len(items)
    errors: list[BaseException] = []

    async def _drain() -> None:
        while not errors:
            try:
                position, item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[position] = await worker(item)
            except Exception as exc:
                if not errors:
                    logger.warning(
                        "worker_pool_stopping",
                        failed_position=position,
                        remaining=queue.qsize(),
                        error=str(exc),
                    )
                errors.append(exc)

    workers = [asyncio.create_task(_drain()) for _ in range(min(concurrency, len(items)))]
    await asyncio.gather(*workers)

    if errors:
        raise errors[0]
    return results  # type: ignore[return-value]
