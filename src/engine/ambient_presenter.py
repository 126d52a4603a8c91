"""
Ambient Presenter - cancellable background task showing the weather image

Started fresh by the Orchestrator each time it releases the display. Each
iteration waits (settle delay first, cadence afterwards), then either exits
(announcement active / token signalled), blanks the panel (night window) or
draws the cached ambient image.

The cadence wait is tied to the cancellation token, so cancelling ends the
wait immediately without polling.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Optional

from engine.display_context import DisplayContext
from engine.frame_renderer import FrameRenderer
from engine.guarded_writer import GuardedWriter
from models.config import TimingConfig
from models.errors import RenderError
from services.ambient_cache import AmbientContentCache
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.AMBIENT)

Clock = Callable[[], datetime]


def is_night(hour: int, start_hour: int = 21, end_hour: int = 7) -> bool:
    """
    True when hour falls in the night window [start_hour, end_hour).

    The window may wrap midnight (default 21:00-07:00).
    """
    if start_hour == end_hour:
        return False
    if start_hour > end_hour:
        return hour >= start_hour or hour < end_hour
    return start_hour <= hour < end_hour


class AmbientPresenter:
    """
    One presenter run. Not restartable: the Orchestrator creates a new one.

    Example:
        presenter = AmbientPresenter(context, writer, renderer, cache, timing)
        task = asyncio.create_task(presenter.run())
        ...
        presenter.cancel()      # cooperative, no task.cancel()
        await task
    """

    def __init__(
        self,
        context: DisplayContext,
        writer: GuardedWriter,
        renderer: FrameRenderer,
        cache: AmbientContentCache,
        timing: Optional[TimingConfig] = None,
        clock: Clock = datetime.now,
    ):
        self.context = context
        self.writer = writer
        self.renderer = renderer
        self.cache = cache
        self.timing = timing or TimingConfig()
        self.clock = clock

        self.token = asyncio.Event()
        self.iterations = 0
        self.frames_shown = 0

    def cancel(self) -> None:
        """Signal the presenter to exit at its next scheduling point."""
        self.token.set()

    @property
    def cancelled(self) -> bool:
        return self.token.is_set()

    async def run(self) -> None:
        delay = self.timing.ambient_start_delay_s
        log.debug("Ambient presenter started")

        while True:
            if await self._wait(delay):
                break
            delay = self.timing.ambient_cadence_s

            if self._should_exit():
                break

            async with self.context.display_lock:
                # Flag may have flipped while waiting for the lock
                if self._should_exit():
                    break
                self._present_once()

            self.iterations += 1

        log.debug("Ambient presenter exited", iterations=self.iterations, shown=self.frames_shown)

    # === Internals ===

    async def _wait(self, seconds: float) -> bool:
        """Sleep for seconds or until cancelled. Returns True if cancelled."""
        try:
            await asyncio.wait_for(self.token.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    def _should_exit(self) -> bool:
        return self.context.showing_announcement or self.token.is_set()

    def _present_once(self) -> None:
        hour = self.clock().hour
        if is_night(hour, self.timing.night_start_hour, self.timing.night_end_hour):
            self.writer.blank()
            return

        image = self.cache.image
        if image is None:
            return

        try:
            if self.writer.write(lambda: self.renderer.ambient(image)):
                self.frames_shown += 1
        except RenderError as e:
            log.warn(f"Ambient frame skipped: {e}")
