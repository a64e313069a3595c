"""
Admission control for task-pack runs.

A fixed number of runs may hold a slot at once; everyone else waits in
arrival order. Releasing a slot hands it straight to the longest waiter, so a
newcomer can never overtake the queue.

There is no timeout here. Callers that need one wrap `acquire()` in
`asyncio.wait_for`; a waiter that is cancelled (or times out) never ends up
holding a slot.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrencyLimiter:
    def __init__(self, max_concurrency: int) -> None:
        if max_concurrency < 1:
            raise ValueError("Concurrency must be at least 1")
        self._capacity = int(max_concurrency)
        self._running = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def running_count(self) -> int:
        return self._running

    @property
    def queue_length(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    async def acquire(self) -> None:
        if self._running < self._capacity and self.queue_length == 0:
            self._running += 1
            return

        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        logger.debug("admission queued (running=%d, queued=%d)", self._running, self.queue_length)
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # The slot was handed over before the cancellation landed; pass it on.
                self.release()
            elif fut in self._waiters:
                self._waiters.remove(fut)
            raise

    def release(self) -> None:
        if self._running <= 0:
            raise RuntimeError("release() called without a matching acquire()")
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                # Hand-off: the slot moves to the waiter, running count unchanged.
                fut.set_result(None)
                return
        self._running -= 1

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run `fn` once a slot is available; the slot is released however `fn` ends."""
        async with self.slot():
            return await fn()
