"""
Configuration models

Immutable, typed views of the merged YAML configuration.
Built by ConfigManager; passed to components at wiring time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from models.enums import ContentType, DisabledMode, DisplayDriver, LogLevel


@dataclass(frozen=True)
class DisplayConfig:
    """Physical display and mounting orientation"""
    driver: DisplayDriver = DisplayDriver.AUTO
    spi_bus: int = 0
    spi_device: int = 0
    spi_speed_hz: int = 9_000_000
    brightness: float = 0.5
    rotation: Dict[ContentType, int] = field(default_factory=lambda: {
        ContentType.TEXT: 90,
        ContentType.FLASH: 90,
        ContentType.AMBIENT: 180,
    })
    disabled_mode: DisabledMode = DisabledMode.BLANK

    def rotation_for(self, content: ContentType) -> int:
        return self.rotation.get(content, 0)


@dataclass(frozen=True)
class TimingConfig:
    """
    Announcement and ambient timing.

    Defaults reproduce the panel behaviour: 15 flashes of 150 ms on / 150 ms off,
    2 ms per scroll frame, ambient redraw every 30 s, night window 21:00-07:00.
    """
    flash_count: int = 15
    flash_on_s: float = 0.150
    flash_off_s: float = 0.150
    scroll_frame_delay_s: float = 0.002
    scroll_start_offset: int = -16
    scroll_min_offset: int = 17
    font_size_px: int = 15
    text_baseline_y: int = 12
    ambient_start_delay_s: float = 0.1
    ambient_cadence_s: float = 30.0
    night_start_hour: int = 21
    night_end_hour: int = 7


@dataclass(frozen=True)
class SchedulerConfig:
    refresh_interval_s: float = 600.0
    recheck_interval_s: float = 1800.0


@dataclass(frozen=True)
class MqttTopics:
    announcement: str = "home-assistant/signage/control"
    display_power: str = "home-assistant/signage/display/set"
    display_status: str = "home-assistant/signage/display/state"
    availability: str = "home-assistant/signage/availability"
    status: str = "home-assistant/signage/status"


@dataclass(frozen=True)
class MqttConfig:
    broker: str
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = "unicorn_signage"
    keepalive_s: int = 60
    qos: int = 1
    topics: MqttTopics = field(default_factory=MqttTopics)


@dataclass(frozen=True)
class WeatherConfig:
    api_key: str
    location: str
    base_url: str = "https://api.openweathermap.org/data/2.5/weather"
    timeout_s: float = 10.0


@dataclass(frozen=True)
class AssetConfig:
    """Asset locations (relative paths resolve against the src/ directory)"""
    font_path: Path = Path("assets/fonts/UbuntuMono-Regular.ttf")
    images_dir: Path = Path("assets/images")
    weather_dir: Path = Path("assets/images/weather")


@dataclass(frozen=True)
class ApiConfig:
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass(frozen=True)
class LoggingConfig:
    level: LogLevel = LogLevel.INFO
    use_colors: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration"""
    mqtt: MqttConfig
    weather: WeatherConfig
    display: DisplayConfig = field(default_factory=DisplayConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    assets: AssetConfig = field(default_factory=AssetConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    queue_capacity: int = 10
