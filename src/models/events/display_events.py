"""Display and ambient state events (outbound side effects)"""

from dataclasses import dataclass
from typing import Optional

from models.announcement import Announcement
from models.events.base import Event
from models.events.types import EventType
from models.events.sources import EventSource


@dataclass(init=False)
class DisplayPowerChangedEvent(Event):
    enabled: bool

    def __init__(self, enabled: bool):
        super().__init__(
            type=EventType.DISPLAY_POWER_CHANGED,
            source=EventSource.CONTROLLER,
        )
        self.enabled = enabled


@dataclass(init=False)
class AnnouncementStartedEvent(Event):
    announcement: Announcement

    def __init__(self, announcement: Announcement):
        super().__init__(
            type=EventType.ANNOUNCEMENT_STARTED,
            source=EventSource.ORCHESTRATOR,
        )
        self.announcement = announcement


@dataclass(init=False)
class AnnouncementFinishedEvent(Event):
    announcement: Announcement
    completed: bool
    frames: int

    def __init__(self, announcement: Announcement, completed: bool, frames: int):
        """
        Args:
            announcement: the announcement that was shown
            completed: False when the sequence aborted on a render error
            frames: number of scroll frames rendered
        """
        super().__init__(
            type=EventType.ANNOUNCEMENT_FINISHED,
            source=EventSource.ORCHESTRATOR,
        )
        self.announcement = announcement
        self.completed = completed
        self.frames = frames


@dataclass(init=False)
class AmbientRefreshedEvent(Event):
    fetched_at: float

    def __init__(self, fetched_at: float):
        super().__init__(
            type=EventType.AMBIENT_REFRESHED,
            source=EventSource.SCHEDULER,
        )
        self.fetched_at = fetched_at


@dataclass(init=False)
class AmbientFetchFailedEvent(Event):
    error: str
    entered_backoff: bool

    def __init__(self, error: str, entered_backoff: bool):
        super().__init__(
            type=EventType.AMBIENT_FETCH_FAILED,
            source=EventSource.SCHEDULER,
        )
        self.error = error
        self.entered_backoff = entered_backoff
