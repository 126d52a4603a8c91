# display_factory.py

from models.config import DisplayConfig
from models.enums import DisplayDriver
from runtime.runtime_info import RuntimeInfo
from hardware.display.display_interface import IDisplay
from hardware.display.virtual_display import VirtualDisplay
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HARDWARE)


def create_display(config: DisplayConfig) -> IDisplay:
    """
    Pick the device sink.

    - unicorn_hd: real panel, failures propagate (explicitly requested hardware)
    - virtual: in-memory panel
    - auto: real panel on a Pi with spidev available, virtual otherwise;
      NEVER crashes the app on PC / WSL
    """
    if config.driver == DisplayDriver.VIRTUAL:
        return VirtualDisplay(history_limit=1000)

    if config.driver == DisplayDriver.UNICORN_HD:
        return _create_unicorn(config)

    if RuntimeInfo.is_raspberry_pi() and RuntimeInfo.has_spidev():
        try:
            return _create_unicorn(config)
        except Exception as e:
            log.warn(f"Unicorn HAT HD unavailable, using virtual display: {e}")

    log.info("Using virtual display")
    return VirtualDisplay(history_limit=1000)


def _create_unicorn(config: DisplayConfig) -> IDisplay:
    from hardware.display.unicorn_hd import UnicornHDConfig, UnicornHDDisplay

    return UnicornHDDisplay(UnicornHDConfig(
        bus=config.spi_bus,
        device=config.spi_device,
        speed_hz=config.spi_speed_hz,
        brightness=config.brightness,
    ))
