"""
Shared fixtures: in-memory display, scaled-down timing, fake font, fake
clock and fake ambient source.
"""

import time
from datetime import datetime

import pytest
from PIL import Image, ImageFont

from engine.display_context import DisplayContext
from engine.frame_renderer import FontAsset, FrameRenderer
from engine.guarded_writer import GuardedWriter
from engine.intake_queue import IntakeQueue
from hardware.display.virtual_display import VirtualDisplay
from lifecycle.task_registry import TaskRegistry
from models.config import DisplayConfig, SchedulerConfig, TimingConfig
from models.enums import FlashColor
from models.errors import WeatherFetchError
from services.ambient_cache import AmbientContentCache
from services.event_bus import EventBus
from services.weather_service import WeatherReading


class DefaultFont(FontAsset):
    """Pillow's bundled scalable font, so tests need no TTF on disk"""

    def face(self, size_px):
        return ImageFont.load_default(size=size_px)


class FakeClock:
    """Callable clock with a settable hour"""

    def __init__(self, hour: int = 12, minute: int = 0):
        self.hour = hour
        self.minute = minute

    def __call__(self) -> datetime:
        return datetime(2026, 1, 12, self.hour, self.minute)


class FakeAmbientSource:
    """
    Returns queued outcomes in order; an exception instance is raised.
    When the queue is empty the last outcome repeats.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def fetch(self) -> WeatherReading:
        self.calls += 1
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def make_reading(color=(0, 255, 0), description="clear sky") -> WeatherReading:
    return WeatherReading(
        image=Image.new("RGBA", (16, 16), color + (255,)),
        condition_id=800,
        icon_code="01d",
        icon_name="clear",
        description=description,
        fetched_at=time.time(),
    )


def fetch_error(message="HTTP 401: invalid api key") -> WeatherFetchError:
    return WeatherFetchError(message)


@pytest.fixture(autouse=True)
def fresh_task_registry():
    """Each test starts with an empty global task registry."""
    TaskRegistry._instance = None
    yield
    TaskRegistry._instance = None


@pytest.fixture
def timing():
    return TimingConfig(
        flash_on_s=0.001,
        flash_off_s=0.001,
        scroll_frame_delay_s=0,
        ambient_start_delay_s=0.01,
        ambient_cadence_s=0.02,
    )


@pytest.fixture
def scheduler_config():
    return SchedulerConfig(refresh_interval_s=0.01, recheck_interval_s=0.01)


@pytest.fixture
def font():
    return DefaultFont(name="default", data=b"")


@pytest.fixture
def display():
    return VirtualDisplay()


@pytest.fixture
def context():
    return DisplayContext()


@pytest.fixture
def writer(context, display):
    return GuardedWriter(context, display)


@pytest.fixture
def renderer(font, timing):
    return FrameRenderer(font, DisplayConfig(), timing)


@pytest.fixture
def cache():
    return AmbientContentCache()


@pytest.fixture
def intake():
    return IntakeQueue(capacity=10)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def clock():
    return FakeClock(hour=12)


@pytest.fixture
def panel_images():
    return {
        FlashColor.RED: Image.new("RGB", (16, 16), (255, 0, 0)),
        FlashColor.ORANGE: Image.new("RGB", (16, 16), (255, 110, 0)),
        FlashColor.BLUE: Image.new("RGB", (16, 16), (0, 40, 255)),
    }


@pytest.fixture
def reading():
    """Factory for successful weather readings"""
    return make_reading


@pytest.fixture
def ambient_source():
    """Factory for FakeAmbientSource(*outcomes)"""
    return FakeAmbientSource
