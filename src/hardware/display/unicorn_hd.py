# hardware/display/unicorn_hd.py
"""
UnicornHDDisplay - Pimoroni Unicorn HAT HD driver
==================================================
Concrete implementation of IDisplay over SPI (spidev).

Protocol:
- One transfer per frame: start-of-frame byte 0x72 followed by
  16 × 16 × 3 = 768 RGB bytes, row-major
- Brightness is applied in software (the panel has no global dimmer)
"""

from __future__ import annotations
from dataclasses import dataclass

import spidev

from hardware.display.display_interface import IDisplay, Origin
from models.frame import PANEL_HEIGHT, PANEL_WIDTH, RenderedFrame
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HARDWARE)

SOF = 0x72
FRAME_BYTES = PANEL_WIDTH * PANEL_HEIGHT * 3


@dataclass(frozen=True)
class UnicornHDConfig:
    """SPI wiring for the Unicorn HAT HD."""
    bus: int = 0
    device: int = 0
    speed_hz: int = 9_000_000
    brightness: float = 0.5


class UnicornHDDisplay(IDisplay):
    """
    Unicorn HAT HD driver using spidev.

    - Every draw() is a single SPI transfer of the whole panel
    - halt() pushes an all-black buffer
    """

    def __init__(self, config: UnicornHDConfig) -> None:
        self.config = config
        self._brightness = max(0.0, min(1.0, config.brightness))

        self._spi = spidev.SpiDev()
        self._spi.open(config.bus, config.device)
        self._spi.max_speed_hz = config.speed_hz
        self._closed = False

        log.info(
            "Unicorn HAT HD initialized",
            spi=f"/dev/spidev{config.bus}.{config.device}",
            speed_hz=config.speed_hz,
            brightness=self._brightness,
        )

    @property
    def brightness(self) -> float:
        return self._brightness

    def set_brightness(self, value: float) -> None:
        self._brightness = max(0.0, min(1.0, value))

    def draw(self, frame: RenderedFrame, origin: Origin = (0, 0)) -> None:
        self._transfer(frame.shifted(origin).to_bytes())

    def halt(self) -> None:
        self._transfer(bytes(FRAME_BYTES))

    def close(self) -> None:
        if self._closed:
            return
        try:
            self.halt()
        finally:
            self._spi.close()
            self._closed = True
            log.info("Unicorn HAT HD closed")

    def _transfer(self, payload: bytes) -> None:
        if self._closed:
            return
        if self._brightness < 1.0:
            payload = bytes(int(b * self._brightness) for b in payload)
        self._spi.xfer2([SOF] + list(payload))
