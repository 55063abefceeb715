"""Bounded, paced fan-out for rate-limited async calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from neriah.services.sync_policy import PacingPolicy

T = TypeVar("T")
R = TypeVar("R")


class RequestPacer:
    """Spaces call start times at least ``delay`` seconds apart."""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._lock = asyncio.Lock()
        self._next_start: float | None = None

    async def wait_turn(self) -> None:
        """Block until this caller may start its request."""
        if self.delay <= 0:
            return
        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()
            if self._next_start is not None and self._next_start > now:
                await asyncio.sleep(self._next_start - now)
                now = loop.time()
            self._next_start = now + self.delay


async def paced_map(
    func: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    policy: PacingPolicy,
) -> list[R]:
    """Apply ``func`` to every item under the pacing policy.

    At most ``policy.max_concurrent_extractions`` calls run at once and call
    starts are spaced by ``policy.inter_request_delay_seconds``. Results come
    back in input order. ``func`` is responsible for its own error handling;
    an exception escaping it propagates.

    Args:
        func: Async function to apply.
        items: Inputs.
        policy: Concurrency cap and spacing.

    Returns:
        Results aligned with ``items``.
    """
    semaphore = asyncio.Semaphore(policy.max_concurrent_extractions)
    pacer = RequestPacer(policy.inter_request_delay_seconds)

    async def run_one(item: T) -> R:
        async with semaphore:
            await pacer.wait_turn()
            return await func(item)

    return list(await asyncio.gather(*[run_one(item) for item in items]))
