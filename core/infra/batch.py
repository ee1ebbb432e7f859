"""
batch.py – run an async worker over a list in fixed-size, paced groups.

Groups run strictly one after another; members of a group run concurrently.
A worker that raises contributes an empty list, so one bad item never takes
down its group or the rest of the run.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Worker = Callable[[T], Awaitable[List[R]]]


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    """Split *items* into contiguous lists of *size* (the last may be shorter)."""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


async def _isolated(worker: Worker, item: T) -> List[R]:
    try:
        return list(await worker(item))
    except asyncio.CancelledError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.warning("Worker failed for %r: %s", item, exc)
        return []


async def iter_batched(
    items: Sequence[T],
    worker: Worker,
    *,
    batch_size: int,
    pause_s: float = 0.12,
) -> AsyncIterator[List[R]]:
    """Yield the flattened results of each group, in group order.

    After every group the runner sleeps *pause_s* before starting the next one.
    """
    groups = chunked(items, batch_size)
    for idx, group in enumerate(groups, start=1):
        logger.debug("Group %d/%d – %d items", idx, len(groups), len(group))
        results = await asyncio.gather(*(_isolated(worker, item) for item in group))
        yield [row for per_item in results for row in per_item]
        await asyncio.sleep(pause_s)


async def run_batched(
    items: Sequence[T],
    worker: Worker,
    *,
    batch_size: int,
    pause_s: float = 0.12,
) -> List[R]:
    """Collect :func:`iter_batched` into a single list."""
    out: List[R] = []
    async for rows in iter_batched(items, worker, batch_size=batch_size, pause_s=pause_s):
        out = out + rows
    return out
