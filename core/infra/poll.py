"""
poll.py – wait for a value to show up, with a hard deadline.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollTimeout(Exception):
    """Raised by :func:`poll_until` when the deadline passes without a value."""

    def __init__(self, timeout_s: float, attempts: int) -> None:
        super().__init__(f"no value after {timeout_s:.1f}s ({attempts} checks)")
        self.timeout_s = timeout_s
        self.attempts = attempts


async def poll_until(
    probe: Callable[[], Optional[T]],
    *,
    timeout_s: float,
    interval_s: float = 0.1,
) -> T:
    """Call *probe* every *interval_s* seconds until it returns a truthy value.

    The probe is checked once immediately, then after every sleep while the
    deadline has not passed. Returns the first truthy value; raises
    :class:`PollTimeout` otherwise.
    """
    deadline = time.monotonic() + timeout_s
    attempts = 1
    value = probe()
    while not value and time.monotonic() < deadline:
        await asyncio.sleep(interval_s)
        attempts += 1
        value = probe()

    if not value:
        logger.debug("poll gave up after %d checks", attempts)
        raise PollTimeout(timeout_s, attempts)
    return value
