"""Bounded async fan-out over a fixed item list."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class Outcome(Generic[R]):
    """Result slot for one item: a value or the exception it raised."""

    value: R | None = None
    error: Exception | None = None


async def run_bounded(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    concurrency: int,
) -> list[Outcome[R]]:
    """Run `worker` over `items` with at most `concurrency` in flight.

    A fixed pool of tasks repeatedly claims the next unclaimed index and
    writes into that index's slot, so output order matches input order
    regardless of completion order. One item's exception is captured in
    its slot and never cancels the others.
    """
    outcomes: list[Outcome[R]] = [Outcome() for _ in items]
    next_index = 0

    async def _drain() -> None:
        nonlocal next_index
        while next_index < len(items):
            i = next_index
            next_index += 1
            try:
                outcomes[i].value = await worker(items[i])
            except Exception as e:
                outcomes[i].error = e

    pool_size = max(1, min(concurrency, len(items)))
    await asyncio.gather(*(_drain() for _ in range(pool_size)))
    return outcomes
