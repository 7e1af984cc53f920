"""Bounded concurrent execution with aggregated failures."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from scalex.lib.errors import ReconciliationError

T = TypeVar("T")
R = TypeVar("R")


async def gather_bounded(
    func: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    *,
    max_concurrency: int,
    operation: str,
) -> list[R]:
    """Run ``func`` over ``items`` concurrently with a semaphore bound.

    Every item is processed even when some fail. Results keep input order.

    Args:
        func: Coroutine function applied to each item
        items: Items to process
        max_concurrency: Maximum number of concurrent calls
        operation: Name of the phase, used in the aggregate error

    Returns:
        Results in the same order as ``items``

    Raises:
        ReconciliationError: If one or more calls failed; ``errors`` holds
            each failure in input order
    """
    if not items:
        return []

    semaphore = asyncio.Semaphore(max_concurrency)

    async def _run(item: T) -> R:
        async with semaphore:
            return await func(item)

    results = await asyncio.gather(*(_run(i) for i in items), return_exceptions=True)

    values: list[R] = []
    errors: list[Exception] = []
    for result in results:
        if isinstance(result, Exception):
            errors.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            values.append(result)

    if errors:
        raise ReconciliationError(operation, errors)
    return values
