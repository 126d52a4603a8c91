from enum import Enum, auto


class EventType(Enum):
    # Inbound commands (MQTT / HTTP API)
    ANNOUNCEMENT_RECEIVED = auto()
    DISPLAY_POWER_COMMAND = auto()

    # Display state
    DISPLAY_POWER_CHANGED = auto()
    ANNOUNCEMENT_STARTED = auto()
    ANNOUNCEMENT_FINISHED = auto()

    # Ambient content
    AMBIENT_REFRESHED = auto()
    AMBIENT_FETCH_FAILED = auto()
