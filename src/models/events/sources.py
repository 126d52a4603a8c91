from enum import Enum, auto


class EventSource(Enum):
    """Event source identifiers for application events"""
    MQTT = auto()           # Message bus bridge
    HTTP_API = auto()       # Local FastAPI endpoints
    CONTROLLER = auto()     # CommandController (display power owner)
    ORCHESTRATOR = auto()   # Announcement render loop
    SCHEDULER = auto()      # Periodic refresh scheduler
