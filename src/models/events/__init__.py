"""
Event system for the signage display

Inbound command events (bus/API → controller) and outbound state events
(orchestrator/scheduler → bus adapters).
"""

# Event type, base class, and sources
from models.events.types import EventType
from models.events.base import Event
from models.events.sources import EventSource

# Inbound commands
from models.events.command_events import (
    AnnouncementReceivedEvent,
    DisplayPowerCommandEvent,
)

# Display / ambient state
from models.events.display_events import (
    DisplayPowerChangedEvent,
    AnnouncementStartedEvent,
    AnnouncementFinishedEvent,
    AmbientRefreshedEvent,
    AmbientFetchFailedEvent,
)

__all__ = [
    # Type, base, and sources
    "EventType",
    "Event",
    "EventSource",

    # Inbound commands
    "AnnouncementReceivedEvent",
    "DisplayPowerCommandEvent",

    # Display / ambient state
    "DisplayPowerChangedEvent",
    "AnnouncementStartedEvent",
    "AnnouncementFinishedEvent",
    "AmbientRefreshedEvent",
    "AmbientFetchFailedEvent",
]
