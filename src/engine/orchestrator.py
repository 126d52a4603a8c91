"""
Orchestrator - the single authority over the physical display

Architecture:
  - Consumes Announcements from the IntakeQueue strictly FIFO
  - Runs PRIORITY_FLASH (skipped for NONE) then SCROLLING for each one,
    holding the display lock for the whole sequence
  - Starts / cooperatively stops the Ambient Presenter around announcements
  - Every physical write goes through the GuardedWriter (display on/off aware)

States:
  IDLE → PRIORITY_FLASH → SCROLLING → IDLE

Flash:   N cycles of (panel colour, on-delay, halt, off-delay)
Scroll:  offsets from scroll_start_offset upward, one frame per frame delay,
         until offset >= scroll_min_offset and the frame is fully black
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from datetime import datetime
from typing import Deque, Dict, Optional

from PIL import Image

from engine.ambient_presenter import AmbientPresenter, Clock
from engine.blank_detector import scroll_finished
from engine.display_context import DisplayContext
from engine.frame_renderer import FrameRenderer
from engine.guarded_writer import GuardedWriter
from engine.intake_queue import IntakeQueue
from lifecycle.task_registry import TaskCategory, create_tracked_task
from models.announcement import Announcement
from models.config import TimingConfig
from models.enums import DisplayPhase, FlashColor
from models.errors import RenderError
from models.events import AnnouncementFinishedEvent, AnnouncementStartedEvent
from models.frame import PANEL_WIDTH, RenderedFrame
from services.ambient_cache import AmbientContentCache
from services.event_bus import EventBus
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.ORCHESTRATOR)


class Orchestrator:
    """
    Display orchestration and render loop.

    Manages:
    - Announcement sequences (flash + scroll)
    - ShowingAnnouncementFlag and the display phase
    - Ambient Presenter lifecycle (start at startup / after each announcement)
    - Announcement metrics
    """

    def __init__(
        self,
        context: DisplayContext,
        intake: IntakeQueue,
        writer: GuardedWriter,
        renderer: FrameRenderer,
        cache: AmbientContentCache,
        panel_images: Dict[FlashColor, Image.Image],
        timing: Optional[TimingConfig] = None,
        event_bus: Optional[EventBus] = None,
        clock: Clock = datetime.now,
    ):
        missing = [c.name for c in FlashColor if c not in panel_images]
        if missing:
            raise ValueError(f"Missing flash panel images: {missing}")

        self.context = context
        self.intake = intake
        self.writer = writer
        self.renderer = renderer
        self.cache = cache
        self.panel_images = panel_images
        self.timing = timing or TimingConfig()
        self.event_bus = event_bus
        self.clock = clock

        self._flash_frames: Dict[FlashColor, RenderedFrame] = {}

        # Runtime state
        self.running = False
        self.render_task: Optional[asyncio.Task] = None
        self.presenter: Optional[AmbientPresenter] = None
        self.presenter_task: Optional[asyncio.Task] = None

        # Metrics
        self.announcements_shown = 0
        self.announcements_aborted = 0
        self.presenters_started = 0
        self.durations: Deque[float] = deque(maxlen=50)
        self.last_announcement: Optional[Announcement] = None

    # === Lifecycle ===

    async def start(self) -> None:
        """Start the render loop and the first Ambient Presenter (unless in backoff)."""
        if self.running:
            log.warn("Orchestrator already running")
            return

        self.running = True
        self.render_task = create_tracked_task(
            self._render_loop(),
            category=TaskCategory.RENDER,
            description="Orchestrator render loop",
        )

        if self.context.ambient_error:
            log.warn("Ambient source in backoff, not starting presenter")
        else:
            self._start_presenter()

        log.info("Orchestrator started", queue_capacity=self.intake.capacity)

    async def stop(self) -> None:
        """Stop the presenter and the render loop."""
        if not self.running:
            return
        self.running = False

        await self._stop_presenter()

        if self.render_task:
            self.render_task.cancel()
            try:
                await self.render_task
            except asyncio.CancelledError:
                pass

        self.context.phase = DisplayPhase.IDLE
        self.context.showing_announcement = False

        log.info(
            "Orchestrator stopped",
            shown=self.announcements_shown,
            aborted=self.announcements_aborted,
        )

    # === Metrics ===

    def get_metrics(self) -> Dict:
        avg = sum(self.durations) / len(self.durations) if self.durations else 0.0
        return {
            "announcements_shown": self.announcements_shown,
            "announcements_aborted": self.announcements_aborted,
            "presenters_started": self.presenters_started,
            "avg_duration_s": round(avg, 3),
            "frames_written": self.writer.frames_written,
            "writes_suppressed": self.writer.writes_suppressed,
            "queue_depth": self.intake.qsize(),
            "presenter_running": self.presenter_running,
        }

    @property
    def presenter_running(self) -> bool:
        return self.presenter_task is not None and not self.presenter_task.done()

    # === Core Render Loop ===

    async def _render_loop(self) -> None:
        log.debug("Render loop waiting for announcements")

        while self.running:
            announcement = await self.intake.get()
            try:
                await self.show_announcement(announcement)
            except Exception as e:
                # Logged and dropped; the loop keeps consuming
                self.announcements_aborted += 1
                log.error(f"Announcement failed: {e}", text=announcement.text, exc_info=True)
                self._resume_ambient()
            finally:
                self.intake.task_done()

    async def show_announcement(self, announcement: Announcement) -> bool:
        """
        Run one full announcement sequence.

        Returns:
            True if the sequence completed, False if it aborted on a render or device error
        """
        started = time.perf_counter()
        self.last_announcement = announcement

        completed = True
        frames = 0

        # Take ownership: presenter sees the flag / token and exits on its own
        self.context.showing_announcement = True
        try:
            await self._stop_presenter()
            await self._publish(AnnouncementStartedEvent(announcement))

            log.info(
                "Announcement started",
                text=announcement.text,
                priority=announcement.priority.name,
                display=("on" if self.context.display_enabled else "off"),
            )

            async with self.context.display_lock:
                try:
                    color = announcement.flash_color
                    if color is not None:
                        await self._run_flash(color)
                    frames = await self._run_scroll(announcement.text)
                except (RenderError, OSError) as e:
                    # OSError: device transfer failed (SPI)
                    completed = False
                    log.error(f"Announcement aborted: {e}", text=announcement.text)
                finally:
                    self.context.phase = DisplayPhase.IDLE
        finally:
            self.context.showing_announcement = False

        duration = time.perf_counter() - started
        self.durations.append(duration)
        if completed:
            self.announcements_shown += 1
        else:
            self.announcements_aborted += 1

        await self._publish(AnnouncementFinishedEvent(announcement, completed=completed, frames=frames))
        log.info("Announcement finished", frames=frames, duration=f"{duration:.2f}s")

        self._resume_ambient()
        return completed

    # === Sequences ===

    async def _run_flash(self, color: FlashColor) -> None:
        self.context.phase = DisplayPhase.PRIORITY_FLASH
        timing = self.timing

        for _ in range(timing.flash_count):
            self.writer.write(lambda: self._flash_frame(color))
            await asyncio.sleep(timing.flash_on_s)
            self.writer.halt()
            await asyncio.sleep(timing.flash_off_s)

    async def _run_scroll(self, text: str) -> int:
        """Scroll text across the panel. Returns the number of frames produced."""
        self.context.phase = DisplayPhase.SCROLLING
        timing = self.timing

        offset = timing.scroll_start_offset
        frames = 0
        max_frames = self._scroll_frame_limit(text)
        while frames < max_frames:
            frame = self.renderer.text(text, offset)
            self.writer.write(frame)
            frames += 1
            await asyncio.sleep(timing.scroll_frame_delay_s)

            if scroll_finished(offset, frame, timing.scroll_min_offset):
                break
            offset += 1
        else:
            log.warn("Scroll frame limit reached", text=text, frames=frames)

        return frames

    def _scroll_frame_limit(self, text: str) -> int:
        """
        Upper bound on scroll frames: the text has left the panel once the
        offset passes its width, plus a panel of slack for glyph overhang.
        """
        timing = self.timing
        last_offset = max(self.renderer.text_width(text), timing.scroll_min_offset) + 2 * PANEL_WIDTH
        return last_offset - timing.scroll_start_offset + 1

    def _flash_frame(self, color: FlashColor) -> RenderedFrame:
        frame = self._flash_frames.get(color)
        if frame is None:
            frame = self.renderer.solid_color(self.panel_images[color])
            self._flash_frames[color] = frame
        return frame

    # === Ambient Presenter ===

    def _resume_ambient(self) -> None:
        """Restart ambient on the completion edge, only when the source is healthy."""
        if not self.running or self.presenter_running:
            return
        if self.context.ambient_error:
            log.debug("Ambient source in backoff, presenter not restarted")
            return
        self._start_presenter()

    def _start_presenter(self) -> None:
        self.presenter = AmbientPresenter(
            context=self.context,
            writer=self.writer,
            renderer=self.renderer,
            cache=self.cache,
            timing=self.timing,
            clock=self.clock,
        )
        self.presenter_task = create_tracked_task(
            self.presenter.run(),
            category=TaskCategory.AMBIENT,
            description="Ambient presenter",
        )
        self.presenters_started += 1
        log.debug("Ambient presenter scheduled")

    async def _stop_presenter(self) -> None:
        """Signal the presenter's token and wait for it to leave on its own."""
        if self.presenter is None:
            return

        self.presenter.cancel()
        task = self.presenter_task
        self.presenter = None
        self.presenter_task = None

        if task is not None and not task.done():
            try:
                await task
            except Exception as e:
                log.warn(f"Ambient presenter ended with error: {e}")

    async def _publish(self, event) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish(event)
