import asyncio

import pytest
from PIL import Image

from engine.frame_renderer import FrameRenderer
from engine.guarded_writer import GuardedWriter
from engine.orchestrator import Orchestrator
from hardware.display.virtual_display import VirtualDisplay
from models.announcement import Announcement
from models.config import DisplayConfig, TimingConfig
from models.enums import AnnouncementPriority, DisabledMode, DisplayPhase, FlashColor
from models.errors import RenderError
from models.events import EventType
from models.frame import RenderedFrame

RED = (255, 0, 0)


@pytest.fixture
def orchestrator(context, intake, writer, renderer, cache, panel_images, timing, event_bus, clock):
    return Orchestrator(
        context, intake, writer, renderer, cache, panel_images,
        timing=timing, event_bus=event_bus, clock=clock,
    )


@pytest.fixture
def events(event_bus):
    """Names of announcement events in publish order"""
    seen = []

    async def record(event):
        seen.append((event.type, event.announcement.text))

    event_bus.subscribe(EventType.ANNOUNCEMENT_STARTED, record)
    event_bus.subscribe(EventType.ANNOUNCEMENT_FINISHED, record)
    return seen


async def test_critical_announcement_flashes_red_then_scrolls(orchestrator, display):
    completed = await orchestrator.show_announcement(
        Announcement("HELLO", AnnouncementPriority.CRITICAL)
    )
    assert completed

    flash, scroll = display.history[:30], display.history[30:]

    # 15 × (red panel, halt)
    for i in range(0, 30, 2):
        assert set(flash[i].frame.pixels) == {RED}
        assert flash[i + 1].is_halt

    assert scroll
    assert all(not w.is_halt for w in scroll)
    assert any(w.frame.lit_count() for w in scroll)
    assert scroll[-1].frame == RenderedFrame.blank()


@pytest.mark.parametrize("priority, color", [
    (AnnouncementPriority.WARNING, (255, 110, 0)),
    (AnnouncementPriority.INFO, (0, 40, 255)),
])
async def test_flash_colour_follows_priority(orchestrator, display, priority, color):
    await orchestrator.show_announcement(Announcement("x", priority))

    assert display.halt_count() == 15
    assert set(display.history[0].frame.pixels) == {color}


async def test_no_flash_for_priority_none(orchestrator, display):
    await orchestrator.show_announcement(Announcement("HELLO"))

    assert display.halt_count() == 0
    # First scroll frame starts just off the panel
    assert display.history[0].frame == RenderedFrame.blank()


async def test_single_character_scroll_length(orchestrator, display):
    await orchestrator.show_announcement(Announcement("I"))

    # Offsets -16 .. 17 inclusive: the glyph is gone long before offset 17
    assert len(display.drawn_frames()) == 34


async def test_scroll_ends_on_first_blank_frame_after_minimum(orchestrator, display):
    await orchestrator.show_announcement(Announcement("WIDE TEXT"))

    frames = display.drawn_frames()
    assert frames[-1] == RenderedFrame.blank()
    assert frames[-2].lit_count() > 0
    assert len(frames) > 34


async def test_flag_and_phase_restored(orchestrator, context, event_bus):
    seen = {}

    async def on_started(event):
        seen["showing"] = context.showing_announcement

    event_bus.subscribe(EventType.ANNOUNCEMENT_STARTED, on_started)
    await orchestrator.show_announcement(Announcement("hi", AnnouncementPriority.INFO))

    assert seen["showing"] is True
    assert context.showing_announcement is False
    assert context.phase == DisplayPhase.IDLE
    assert orchestrator.announcements_shown == 1


async def test_disabled_display_blank_mode(orchestrator, context, display, event_bus):
    finished = []
    event_bus.subscribe(EventType.ANNOUNCEMENT_FINISHED, lambda e: finished.append(e.frames))

    await orchestrator.show_announcement(Announcement("HELLO", AnnouncementPriority.CRITICAL))
    enabled_history = len(display.history)
    display.clear_history()

    context.display_enabled = False
    await orchestrator.show_announcement(Announcement("HELLO", AnnouncementPriority.CRITICAL))

    assert display.visible_frames() == []
    assert display.drawn_frames() == []
    # Same sequence length, every write replaced by a halt
    assert len(display.history) == enabled_history
    assert finished[0] == finished[1]


async def test_disabled_display_skip_mode(context, intake, display, renderer, cache, panel_images, timing):
    writer = GuardedWriter(context, display, disabled_mode=DisabledMode.SKIP)
    orchestrator = Orchestrator(context, intake, writer, renderer, cache, panel_images, timing=timing)
    context.display_enabled = False

    assert await orchestrator.show_announcement(Announcement("HELLO", AnnouncementPriority.CRITICAL))
    assert display.history == []
    assert writer.writes_suppressed > 30


async def test_render_error_aborts_sequence(orchestrator, context, renderer, monkeypatch):
    def broken(text, offset):
        raise RenderError("glyph exploded")

    monkeypatch.setattr(renderer, "text", broken)

    completed = await orchestrator.show_announcement(Announcement("boom"))

    assert completed is False
    assert orchestrator.announcements_aborted == 1
    assert context.showing_announcement is False
    assert context.phase == DisplayPhase.IDLE


def test_missing_panel_image_rejected(context, intake, writer, renderer, cache, panel_images):
    del panel_images[FlashColor.ORANGE]
    with pytest.raises(ValueError):
        Orchestrator(context, intake, writer, renderer, cache, panel_images)


async def test_announcements_processed_fifo(orchestrator, context, intake, events):
    context.ambient_error = True
    await orchestrator.start()

    await intake.put(Announcement("first", AnnouncementPriority.INFO))
    await intake.put(Announcement("second"))
    await asyncio.wait_for(intake.join(), timeout=5)
    await orchestrator.stop()

    assert events == [
        (EventType.ANNOUNCEMENT_STARTED, "first"),
        (EventType.ANNOUNCEMENT_FINISHED, "first"),
        (EventType.ANNOUNCEMENT_STARTED, "second"),
        (EventType.ANNOUNCEMENT_FINISHED, "second"),
    ]


async def test_render_loop_survives_aborted_announcement(orchestrator, context, intake, renderer, monkeypatch):
    original = renderer.text

    def flaky(text, offset):
        if text == "bad":
            raise RenderError("nope")
        return original(text, offset)

    monkeypatch.setattr(renderer, "text", flaky)
    context.ambient_error = True
    await orchestrator.start()

    await intake.put(Announcement("bad"))
    await intake.put(Announcement("good"))
    await asyncio.wait_for(intake.join(), timeout=5)
    await orchestrator.stop()

    assert orchestrator.announcements_aborted == 1
    assert orchestrator.announcements_shown == 1


async def test_presenter_restarted_after_announcement(orchestrator, intake, cache, event_bus):
    cache.store(Image.new("RGB", (16, 16), (0, 0, 255)))
    running_during = []

    async def on_started(event):
        running_during.append(orchestrator.presenter_running)

    event_bus.subscribe(EventType.ANNOUNCEMENT_STARTED, on_started)

    await orchestrator.start()
    assert orchestrator.presenter_running

    await intake.put(Announcement("hi"))
    await asyncio.wait_for(intake.join(), timeout=5)

    assert running_during == [False]
    assert orchestrator.presenters_started == 2
    assert orchestrator.presenter_running

    await orchestrator.stop()
    assert not orchestrator.presenter_running


async def test_no_presenter_while_in_backoff(orchestrator, context, intake):
    context.ambient_error = True
    await orchestrator.start()
    assert not orchestrator.presenter_running

    await intake.put(Announcement("hi"))
    await asyncio.wait_for(intake.join(), timeout=5)

    assert orchestrator.presenters_started == 0
    await orchestrator.stop()


async def test_metrics(orchestrator):
    await orchestrator.show_announcement(Announcement("ok"))
    metrics = orchestrator.get_metrics()

    assert metrics["announcements_shown"] == 1
    assert metrics["frames_written"] > 0
    assert metrics["queue_depth"] == 0


# === Device failures ===

class FlakyDisplay(VirtualDisplay):
    """Raises like a failed SPI transfer on the first N draws"""

    def __init__(self, failures: int = 1):
        super().__init__()
        self.failures = failures

    def draw(self, frame, origin=(0, 0)):
        if self.failures:
            self.failures -= 1
            raise OSError("spi transfer failed")
        super().draw(frame, origin)


async def test_device_error_aborts_announcement_but_not_render_loop(
    context, intake, renderer, cache, panel_images, timing, event_bus, clock
):
    display = FlakyDisplay(failures=1)
    orchestrator = Orchestrator(
        context, intake, GuardedWriter(context, display), renderer, cache, panel_images,
        timing=timing, event_bus=event_bus, clock=clock,
    )
    context.ambient_error = True
    await orchestrator.start()

    await intake.put(Announcement("A"))
    await intake.put(Announcement("B"))
    await asyncio.wait_for(intake.join(), timeout=5)

    assert not orchestrator.render_task.done()
    assert orchestrator.announcements_aborted == 1
    assert orchestrator.announcements_shown == 1
    assert context.showing_announcement is False
    assert display.drawn_frames()

    await orchestrator.stop()


async def test_unexpected_error_clears_flag_and_resumes_ambient(orchestrator, context, intake, cache, monkeypatch):
    cache.store(Image.new("RGB", (16, 16), (0, 0, 255)))

    async def exploding(text):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(orchestrator, "_run_scroll", exploding)
    await orchestrator.start()

    await intake.put(Announcement("A"))
    await asyncio.wait_for(intake.join(), timeout=5)

    assert not orchestrator.render_task.done()
    assert context.showing_announcement is False
    assert context.phase == DisplayPhase.IDLE
    assert orchestrator.announcements_aborted == 1
    assert orchestrator.presenter_running

    await orchestrator.stop()


# === Timing ===

@pytest.fixture
def recorded_sleeps(monkeypatch):
    """Durations passed to asyncio.sleep; each sleep only yields"""
    real_sleep = asyncio.sleep
    durations = []

    async def fake_sleep(delay, result=None):
        durations.append(delay)
        await real_sleep(0)
        return result

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return durations


@pytest.mark.parametrize("enabled, mode", [
    (True, DisabledMode.BLANK),
    (False, DisabledMode.BLANK),
    (False, DisabledMode.SKIP),
], ids=["display-on", "off-blank", "off-skip"])
async def test_sequence_timing_independent_of_display_power(
    context, intake, display, font, cache, panel_images, recorded_sleeps, enabled, mode
):
    timing = TimingConfig()
    orchestrator = Orchestrator(
        context, intake, GuardedWriter(context, display, disabled_mode=mode),
        FrameRenderer(font, DisplayConfig(), timing), cache, panel_images, timing=timing,
    )
    context.display_enabled = enabled

    await orchestrator.show_announcement(Announcement("I", AnnouncementPriority.CRITICAL))

    # 15 × 150 ms on / 150 ms off, then 2 ms per scroll frame (offsets -16 .. 17)
    assert recorded_sleeps == [0.15, 0.15] * 15 + [0.002] * 34


async def test_no_flash_delays_for_priority_none(context, intake, display, font, cache, panel_images, recorded_sleeps):
    timing = TimingConfig()
    orchestrator = Orchestrator(
        context, intake, GuardedWriter(context, display),
        FrameRenderer(font, DisplayConfig(), timing), cache, panel_images, timing=timing,
    )

    await orchestrator.show_announcement(Announcement("I"))

    assert recorded_sleeps == [0.002] * 34


# === Scroll length ===

def test_scroll_frame_limit_covers_very_long_text(orchestrator, renderer):
    text = "W" * 3000
    width = renderer.text_width(text)
    assert width > 10_000

    # Enough frames for every offset up to the text width
    assert orchestrator._scroll_frame_limit(text) > width - orchestrator.timing.scroll_start_offset


def test_scroll_frame_limit_for_short_text_reaches_minimum_offset(orchestrator):
    timing = orchestrator.timing
    assert orchestrator._scroll_frame_limit("I") > timing.scroll_min_offset - timing.scroll_start_offset
