"""Concurrent fan-out over a batch of independent work items.

Every item gets its own task in a TaskGroup. Errors are caught at the item
boundary, so a failing item never cancels its siblings; the TaskGroup only
fails when the join itself breaks.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from blocktap.errors import FanoutError

log = logging.getLogger("blocktap.fanout")

T = TypeVar("T")
R = TypeVar("R")


@dataclass(slots=True)
class Outcome(Generic[T, R]):
    item: T
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def fan_out(
    items: Sequence[T],
    work: Callable[[T], Awaitable[R]],
    on_outcome: Callable[[Outcome[T, R]], Any] | None = None,
    *,
    max_concurrency: int | None = None,
) -> list[Outcome[T, R]]:
    """
    Run ``work`` over every item concurrently and wait for all of them.

    Parameters
    ----------
    items:
        Work items. One task is started per item before any is awaited.
    work:
        Async operation applied to each item.
    on_outcome:
        Called from inside the item's task as soon as it completes, so calls
        happen in completion order.
    max_concurrency:
        Optional cap on concurrently running ``work`` calls. None is unbounded.

    Returns
    -------
    Exactly ``len(items)`` outcomes, in input order.

    Raises
    ------
    FanoutError
        If joining the batch fails.
    """
    if max_concurrency is not None and max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
    gate = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def _run_one(item: T) -> Outcome[T, R]:
        async with gate if gate is not None else nullcontext():
            try:
                outcome = Outcome(item, value=await work(item))
            except Exception as e:
                log.debug("fan-out item %r failed: %s", item, e)
                outcome = Outcome(item, error=e)
        if on_outcome is not None:
            on_outcome(outcome)
        return outcome

    log.debug("Fanning out %d items (max_concurrency=%s)", len(items), max_concurrency)
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_run_one(item)) for item in items]
    except ExceptionGroup as eg:
        raise FanoutError(f"fan-out join failed: {eg.exceptions[0]!r}") from eg

    outcomes = [t.result() for t in tasks]
    failed = sum(1 for o in outcomes if not o.ok)
    log.info("Fan-out finished: %d ok, %d failed", len(outcomes) - failed, failed)
    return outcomes
