"""Bounded-concurrency helpers for provider calls.

:func:`throttled_gather` is a drop-in replacement for ``asyncio.gather``
that wraps each awaitable in a semaphore acquire/release, so at most
``limit`` of them are in flight at once.  The batch orchestrator uses it to
keep the chunks of one batch under the provider's concurrency budget.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    limit: int,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most *limit* at a time.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    limit:
        Maximum number of awaitables executing simultaneously.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised, and every awaitable runs to completion.
        Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input awaitables.
    """
    # A limit below 1 would deadlock every awaitable; clamp it.
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        # The semaphore context manager blocks here until a slot opens.
        async with semaphore:
            return await coro

    # All tasks are created immediately but only *limit* of them will
    # actually be executing at any moment.
    return await asyncio.gather(
        *(_wrapped(c) for c in coros),
        return_exceptions=return_exceptions,
    )
