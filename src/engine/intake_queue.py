"""
Command Intake Queue - bounded FIFO between message arrival and rendering

Producers never block the network receive thread: submit_threadsafe() hands the
announcement to the event loop, where the producer coroutine waits for free
capacity (bounded backpressure). Producers are serialized through a fair lock so
waiting producers enqueue strictly in arrival order.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Optional

from models.announcement import Announcement
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.INTAKE)

DEFAULT_CAPACITY = 10


class IntakeQueue:
    """
    FIFO buffer of Announcements with fixed capacity.

    Example:
        intake = IntakeQueue(capacity=10)

        # From the event loop
        await intake.put(announcement)

        # From a foreign thread (MQTT network loop)
        intake.submit_threadsafe(announcement, loop)

        # Consumer (Orchestrator)
        announcement = await intake.get()
        ...
        intake.task_done()
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Intake capacity must be >= 1, got {capacity}")

        self.capacity = capacity
        self._queue: asyncio.Queue[Announcement] = asyncio.Queue(maxsize=capacity)
        self._producer_lock = asyncio.Lock()

        self.accepted = 0
        self.waiting_producers = 0

    # === Producer side ===

    async def put(self, announcement: Announcement) -> None:
        """Enqueue, waiting for the consumer to drain when full."""
        self.waiting_producers += 1
        try:
            async with self._producer_lock:
                if self._queue.full():
                    log.warn(
                        "Intake queue full, waiting for orchestrator to drain",
                        capacity=self.capacity,
                    )
                await self._queue.put(announcement)
        finally:
            self.waiting_producers -= 1

        self.accepted += 1
        log.debug(f"Queued {announcement}", depth=self._queue.qsize())

    def submit_threadsafe(
        self,
        announcement: Announcement,
        loop: asyncio.AbstractEventLoop,
    ) -> concurrent.futures.Future:
        """
        Schedule put() on the loop from another thread and return immediately.

        Calls made in order from one thread are enqueued in that order.
        """
        return asyncio.run_coroutine_threadsafe(self.put(announcement), loop)

    # === Consumer side ===

    async def get(self) -> Announcement:
        return await self._queue.get()

    def get_nowait(self) -> Optional[Announcement]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued announcement has been processed."""
        await self._queue.join()

    # === Introspection ===

    def qsize(self) -> int:
        return self._queue.qsize()

    def full(self) -> bool:
        return self._queue.full()

    def empty(self) -> bool:
        return self._queue.empty()

    def __repr__(self) -> str:
        return f"IntakeQueue(depth={self.qsize()}/{self.capacity}, waiting={self.waiting_producers})"
