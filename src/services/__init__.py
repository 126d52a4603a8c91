"""Services layer"""

from .ambient_cache import AmbientContentCache
from .event_bus import EventBus
from .refresh_scheduler import RefreshScheduler
from .weather_service import WeatherService

__all__ = [
    "AmbientContentCache",
    "EventBus",
    "RefreshScheduler",
    "WeatherService",
]
