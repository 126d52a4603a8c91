"""
Enums for the signage display state machine
"""

from enum import Enum, auto


class AnnouncementPriority(Enum):
    """
    Announcement urgency levels.

    Values are the wire strings sent on the announcement topic
    (Home Assistant input_number style: "0.0" .. "3.0").
    """
    NONE = "0.0"
    INFO = "1.0"
    WARNING = "2.0"
    CRITICAL = "3.0"


class FlashColor(Enum):
    """Solid-colour panel images used by the priority flash"""
    RED = "red"
    ORANGE = "orange"
    BLUE = "blue"


class DisplayPhase(Enum):
    """
    Orchestrator states

    IDLE: no announcement active, ambient presenter may be running
    PRIORITY_FLASH: flashing a solid colour matched to the priority
    SCROLLING: rendering successive scroll-offset frames of the text
    """
    IDLE = auto()
    PRIORITY_FLASH = auto()
    SCROLLING = auto()


class ContentType(Enum):
    """Kinds of content with their own mounting rotation"""
    TEXT = auto()
    FLASH = auto()
    AMBIENT = auto()


class DisabledMode(Enum):
    """
    What a physical write does while the display is switched off

    BLANK: issue a halt/blank call instead of the frame (timing kept)
    SKIP: no rendering and no device call at all (timing kept)
    """
    BLANK = "blank"
    SKIP = "skip"


class DisplayDriver(Enum):
    """Physical display backends"""
    AUTO = "auto"
    UNICORN_HD = "unicorn_hd"
    VIRTUAL = "virtual"


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()        # Configuration loading, validation
    HARDWARE = auto()      # SPI, display device
    DISPLAY = auto()       # Display power, context flags
    RENDER = auto()        # Frame rasterization
    ORCHESTRATOR = auto()  # Announcement sequences
    AMBIENT = auto()       # Ambient presenter
    SCHEDULER = auto()     # Refresh / recheck timers
    WEATHER = auto()       # Weather API access
    MQTT = auto()          # Message bus
    INTAKE = auto()        # Command intake queue
    EVENT = auto()         # Event bus events and handling
    API = auto()
    SYSTEM = auto()        # Startup, shutdown, errors
    SHUTDOWN = auto()
    TASK = auto()

    GENERAL = auto()       # Default general category
