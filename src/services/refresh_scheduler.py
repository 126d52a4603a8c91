"""
Refresh Scheduler - timer-driven ambient refresh, heartbeat and error backoff

Two timers:
  refresh  (every refresh_interval_s, always running)
      heartbeat / bus reconnect → always
      ambient fetch             → only when not in backoff
  recheck  (every recheck_interval_s, only while in backoff)
      ambient fetch; success stores the image, clears backoff and stops the timer

Sole writer of DisplayContext.ambient_error and of the AmbientContentCache.
A failed fetch never touches the cache.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from engine.display_context import DisplayContext
from lifecycle.task_registry import TaskCategory, create_tracked_task
from models.config import SchedulerConfig
from models.errors import WeatherFetchError
from models.events import AmbientFetchFailedEvent, AmbientRefreshedEvent
from services.ambient_cache import AmbientContentCache
from services.event_bus import EventBus
from services.weather_service import AmbientSource
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SCHEDULER)


class Heartbeat(Protocol):
    """Availability publisher that can also restore a dropped connection"""

    async def refresh(self) -> None:
        ...


class RefreshScheduler:

    def __init__(
        self,
        context: DisplayContext,
        cache: AmbientContentCache,
        source: AmbientSource,
        heartbeat: Optional[Heartbeat] = None,
        config: Optional[SchedulerConfig] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.context = context
        self.cache = cache
        self.source = source
        self.heartbeat = heartbeat
        self.config = config or SchedulerConfig()
        self.event_bus = event_bus

        self.running = False
        self.refresh_task: Optional[asyncio.Task] = None
        self.recheck_task: Optional[asyncio.Task] = None

        self.refresh_ticks = 0
        self.recheck_ticks = 0
        self.heartbeats_failed = 0

    @property
    def in_backoff(self) -> bool:
        return self.context.ambient_error

    # === Lifecycle ===

    async def initial_fetch(self) -> bool:
        """Startup fetch. Failure enters backoff but is not fatal."""
        ok = await self._fetch()
        if not ok:
            log.warn("Initial weather fetch failed, starting in backoff")
        return ok

    async def start(self) -> None:
        if self.running:
            return
        self.running = True

        self.refresh_task = create_tracked_task(
            self._refresh_loop(),
            category=TaskCategory.SCHEDULER,
            description="Refresh timer",
        )
        if self.in_backoff:
            self._start_recheck()

        log.info(
            "Scheduler started",
            refresh=f"{self.config.refresh_interval_s:.0f}s",
            recheck=f"{self.config.recheck_interval_s:.0f}s",
            backoff=self.in_backoff,
        )

    async def stop(self) -> None:
        if not self.running:
            return
        self.running = False

        for task in (self.refresh_task, self.recheck_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self.refresh_task = None
        self.recheck_task = None
        log.info("Scheduler stopped", refresh_ticks=self.refresh_ticks, recheck_ticks=self.recheck_ticks)

    # === Ticks ===

    async def refresh_tick(self) -> None:
        """One refresh timer event."""
        self.refresh_ticks += 1

        await self._heartbeat()

        if self.in_backoff:
            log.debug("In backoff, refresh fetch skipped")
            return

        await self._fetch()

    async def recheck_tick(self) -> bool:
        """
        One error-recheck timer event.

        Returns:
            True when the source recovered (backoff cleared)
        """
        self.recheck_ticks += 1
        if not self.in_backoff:
            return True

        if await self._fetch():
            log.info("Weather source recovered, backoff cleared")
            return True

        log.warn("Weather source still failing, staying in backoff")
        return False

    # === Loops ===

    async def _refresh_loop(self) -> None:
        while self.running:
            await asyncio.sleep(self.config.refresh_interval_s)
            try:
                await self.refresh_tick()
            except Exception as e:
                log.error(f"Refresh tick failed: {e}", exc_info=True)

    async def _recheck_loop(self) -> None:
        while self.running and self.in_backoff:
            await asyncio.sleep(self.config.recheck_interval_s)
            try:
                if await self.recheck_tick():
                    break
            except Exception as e:
                log.error(f"Recheck tick failed: {e}", exc_info=True)

    def _start_recheck(self) -> None:
        if not self.running:
            return
        if self.recheck_task is not None and not self.recheck_task.done():
            return
        self.recheck_task = create_tracked_task(
            self._recheck_loop(),
            category=TaskCategory.SCHEDULER,
            description="Error recheck timer",
        )
        log.debug("Recheck timer started")

    # === Internals ===

    async def _heartbeat(self) -> None:
        if self.heartbeat is None:
            return
        try:
            await self.heartbeat.refresh()
        except Exception as e:
            self.heartbeats_failed += 1
            log.warn(f"Heartbeat failed: {e}")

    async def _fetch(self) -> bool:
        try:
            reading = await self.source.fetch()
        except WeatherFetchError as e:
            await self._on_fetch_failed(e)
            return False

        self.cache.store(reading.image, reading.description, reading.fetched_at)
        self.context.ambient_error = False
        await self._publish(AmbientRefreshedEvent(reading.fetched_at))
        return True

    async def _on_fetch_failed(self, error: Exception) -> None:
        entering = not self.context.ambient_error
        self.context.ambient_error = True

        log.warn(
            f"Weather fetch failed: {error}",
            backoff="entered" if entering else "continued",
            cached="kept" if self.cache.is_present() else "absent",
        )
        await self._publish(AmbientFetchFailedEvent(str(error), entered_backoff=entering))

        if entering:
            self._start_recheck()

    async def _publish(self, event) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish(event)
