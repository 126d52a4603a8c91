import asyncio

import pytest
from PIL import Image

from engine.ambient_presenter import AmbientPresenter, is_night
from models.config import TimingConfig
from models.frame import RenderedFrame


@pytest.mark.parametrize("hour, night", [
    (21, True),
    (23, True),
    (0, True),
    (6, True),
    (7, False),
    (12, False),
    (20, False),
])
def test_night_window_wraps_midnight(hour, night):
    assert is_night(hour) is night


def test_night_window_without_wrap():
    assert is_night(2, start_hour=1, end_hour=5)
    assert not is_night(5, start_hour=1, end_hour=5)


def test_empty_night_window():
    assert not is_night(3, start_hour=4, end_hour=4)


def green_icon():
    return Image.new("RGBA", (16, 16), (0, 255, 0, 255))


async def run_presenter(presenter, until, timeout=1.0):
    task = asyncio.create_task(presenter.run())
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not until() and loop.time() < deadline:
        await asyncio.sleep(0.005)
    presenter.cancel()
    await asyncio.wait_for(task, timeout=1)


@pytest.fixture
def presenter(context, writer, renderer, cache, timing, clock):
    return AmbientPresenter(context, writer, renderer, cache, timing, clock=clock)


async def test_shows_cached_image_during_the_day(presenter, display, cache):
    cache.store(green_icon(), "clear sky")

    await run_presenter(presenter, lambda: presenter.frames_shown >= 2)

    assert presenter.frames_shown >= 2
    assert set(display.buffer.pixels) == {(0, 255, 0)}


@pytest.mark.parametrize("hour, minute", [(7, 0), (20, 59)])
async def test_shown_at_window_edges(presenter, display, cache, clock, hour, minute):
    clock.hour, clock.minute = hour, minute
    cache.store(green_icon())

    await run_presenter(presenter, lambda: presenter.frames_shown >= 1)

    assert display.visible_frames()


async def test_blank_at_night(presenter, display, cache, clock):
    clock.hour = 21
    cache.store(green_icon())

    await run_presenter(presenter, lambda: presenter.iterations >= 2)

    assert presenter.frames_shown == 0
    assert display.drawn_frames()
    assert display.visible_frames() == []
    assert display.buffer == RenderedFrame.blank()


async def test_nothing_written_without_cached_image(presenter, display):
    await run_presenter(presenter, lambda: presenter.iterations >= 2)

    assert display.history == []


async def test_exits_when_announcement_flag_set(presenter, context, cache, display):
    cache.store(green_icon())
    context.showing_announcement = True

    await asyncio.wait_for(presenter.run(), timeout=1)

    assert presenter.iterations == 0
    assert display.history == []


async def test_cancel_ends_cadence_wait_immediately(context, writer, renderer, cache, timing, clock):
    slow = TimingConfig(ambient_start_delay_s=30, ambient_cadence_s=30)
    presenter = AmbientPresenter(context, writer, renderer, cache, slow, clock=clock)

    task = asyncio.create_task(presenter.run())
    await asyncio.sleep(0.01)
    presenter.cancel()

    await asyncio.wait_for(task, timeout=0.5)
    assert presenter.cancelled


async def test_waits_for_display_lock(presenter, context, cache, display):
    cache.store(green_icon())

    async with context.display_lock:
        task = asyncio.create_task(presenter.run())
        await asyncio.sleep(0.05)
        assert display.history == []
        # Announcement took over while the presenter was waiting
        context.showing_announcement = True

    await asyncio.wait_for(task, timeout=1)
    assert display.history == []


async def test_disabled_display_keeps_cadence_without_visible_frames(presenter, context, cache, display):
    context.display_enabled = False
    cache.store(green_icon())

    await run_presenter(presenter, lambda: presenter.iterations >= 2)

    assert presenter.iterations >= 2
    assert display.visible_frames() == []
