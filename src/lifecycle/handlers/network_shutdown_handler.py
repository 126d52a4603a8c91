from __future__ import annotations
from typing import TYPE_CHECKING, Optional

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from services.mqtt_bridge import MqttBridge
    from services.weather_service import WeatherService

log = get_logger().for_category(LogCategory.SHUTDOWN)


class NetworkShutdownHandler(IShutdownHandler):
    """
    Publishes "offline", disconnects from the broker and closes the weather
    HTTP session.

    Priority: 80
    """

    def __init__(self, mqtt_bridge: "MqttBridge", weather_service: Optional["WeatherService"] = None):
        self.mqtt_bridge = mqtt_bridge
        self.weather_service = weather_service

    @property
    def shutdown_priority(self) -> int:
        return 80

    async def shutdown(self) -> None:
        log.info("Disconnecting from broker...")
        try:
            await self.mqtt_bridge.disconnect()
        finally:
            if self.weather_service is not None:
                await self.weather_service.close()
