"""Inbound command events (announcement, display power)"""

from dataclasses import dataclass

from models.announcement import Announcement
from models.events.base import Event
from models.events.types import EventType
from models.events.sources import EventSource


@dataclass(init=False)
class AnnouncementReceivedEvent(Event):
    """Well-formed announcement arrived on the bus or the HTTP API"""
    announcement: Announcement

    def __init__(self, announcement: Announcement, source: EventSource = EventSource.MQTT):
        super().__init__(
            type=EventType.ANNOUNCEMENT_RECEIVED,
            source=source,
        )
        self.announcement = announcement


@dataclass(init=False)
class DisplayPowerCommandEvent(Event):
    """Request to switch the display on or off"""
    enabled: bool

    def __init__(self, enabled: bool, source: EventSource = EventSource.MQTT):
        super().__init__(
            type=EventType.DISPLAY_POWER_COMMAND,
            source=source,
        )
        self.enabled = enabled
