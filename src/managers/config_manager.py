"""
Config Manager

Main configuration manager with include system support.
Loads modular YAML files plus the credentials file and builds the typed
AppConfig. Any problem is a ConfigError: configuration is fatal at startup.
"""

import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

import yaml

from models.config import (
    ApiConfig,
    AppConfig,
    AssetConfig,
    DisplayConfig,
    LoggingConfig,
    MqttConfig,
    MqttTopics,
    SchedulerConfig,
    TimingConfig,
    WeatherConfig,
)
from models.enums import ContentType, DisabledMode, DisplayDriver, LogLevel
from models.errors import ConfigError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)

SRC_DIR = Path(__file__).parent.parent
DEFAULT_CONFIG_PATH = "config/config.yaml"
CONFIG_ENV_VAR = "SIGNAGE_CONFIG"

REQUIRED_CREDENTIALS = ("broker", "openweatherapikey", "openweatherlocation")

T = TypeVar("T")


class ConfigManager:
    """
    Main configuration manager with include system support

    Loads config.yaml and processes the include: directive to load modular YAML
    files, then reads the credentials file named by credentials_file.

    Example:
        config = ConfigManager()
        app_config = config.load()

        app_config.mqtt.broker
        app_config.timing.flash_count
        config.data["display"]          # raw merged dict
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize ConfigManager

        Args:
            config_path: Path to main config.yaml. Defaults to $SIGNAGE_CONFIG,
                then config/config.yaml relative to src/
        """
        if config_path is None:
            config_path = os.environ.get(CONFIG_ENV_VAR)

        if config_path is None:
            self.config_path = SRC_DIR / DEFAULT_CONFIG_PATH
        else:
            self.config_path = Path(config_path)

        self.data: Dict[str, Any] = {}
        self.credentials: Dict[str, Any] = {}
        self.app_config: Optional[AppConfig] = None

    def load(self) -> AppConfig:
        """
        Load YAML configuration with include system support

        Process:
        1. Load main config.yaml
        2. If it has 'include:' list, load and merge those files
           (keys of the main file win over included ones)
        3. Load credentials_file
        4. Build typed AppConfig

        Raises:
            ConfigError: missing / malformed file, missing key, invalid value
        """
        main_config = _read_yaml(self.config_path)
        config_dir = self.config_path.parent

        if "include" in main_config:
            log.info("Using include-based configuration")
            self.data = self._load_with_includes(main_config["include"], config_dir)
        else:
            log.info("Using monolithic configuration")
            self.data = {}

        for key, value in main_config.items():
            if key not in ("include", "credentials_file"):
                self.data[key] = value

        credentials_file = main_config.get("credentials_file")
        if not credentials_file:
            raise ConfigError("Missing 'credentials_file'", str(self.config_path))
        self.credentials = _read_yaml(_resolve(credentials_file, config_dir))

        self.app_config = build_app_config(self.data, self.credentials)
        log.info(
            "Configuration loaded",
            broker=f"{self.app_config.mqtt.broker}:{self.app_config.mqtt.port}",
            location=self.app_config.weather.location,
            driver=self.app_config.display.driver.value,
        )
        return self.app_config

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict:
        """
        Load and merge multiple YAML files from include list

        Args:
            include_list: List of filenames to load (e.g., ["display.yaml", "mqtt.yaml"])
            config_dir: Directory containing config files

        Returns:
            Merged config dict
        """
        if not isinstance(include_list, list):
            raise ConfigError("'include' must be a list of file names", str(self.config_path))

        merged: Dict[str, Any] = {}
        for filename in include_list:
            file_data = _read_yaml(_resolve(filename, config_dir))
            merged.update(file_data)
            log.debug(f"Loaded {filename}", keys=str(list(file_data.keys())))

        log.info("Config merge complete", total_keys=len(merged), keys=str(list(merged.keys())[:10]))
        return merged


# ===== File helpers =====

def _resolve(path: str, base: Path) -> Path:
    p = Path(path)
    return p if p.is_absolute() else base / p


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError("File not found", str(path))
    except OSError as e:
        raise ConfigError(f"Cannot read file: {e}", str(path))
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML: {e}", str(path))

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Top level must be a mapping", str(path))
    return data


# ===== Typed builders =====

def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    return section


def _value(section: Dict[str, Any], where: str, key: str, default: T, convert: Callable[[Any], T]) -> T:
    if key not in section or section[key] is None:
        return default
    raw = section[key]
    try:
        return convert(raw)
    except (TypeError, ValueError, KeyError) as e:
        raise ConfigError(f"Invalid value for {where}.{key}: {raw!r} ({e})")


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError("expected true/false")


def _non_negative(convert: Callable[[Any], T]) -> Callable[[Any], T]:
    def check(value: Any) -> T:
        result = convert(value)
        if result < 0:
            raise ValueError("must not be negative")
        return result
    return check


def _positive(convert: Callable[[Any], T]) -> Callable[[Any], T]:
    def check(value: Any) -> T:
        result = convert(value)
        if result <= 0:
            raise ValueError("must be positive")
        return result
    return check


def _hour(value: Any) -> int:
    hour = int(value)
    if not 0 <= hour <= 23:
        raise ValueError("hour must be 0-23")
    return hour


def _rotation(value: Any) -> int:
    degrees = int(value)
    if degrees % 90 != 0:
        raise ValueError("rotation must be a multiple of 90")
    return degrees % 360


def _enum(enum_cls: Type[T]) -> Callable[[Any], T]:
    def convert(value: Any) -> T:
        return enum_cls(str(value).lower())
    return convert


def _build_display(data: Dict[str, Any]) -> DisplayConfig:
    s = _section(data, "display")
    defaults = DisplayConfig()

    rotation = dict(defaults.rotation)
    raw_rotation = s.get("rotation") or {}
    if not isinstance(raw_rotation, dict):
        raise ConfigError("display.rotation must be a mapping of text/flash/ambient → degrees")
    for key, value in raw_rotation.items():
        try:
            content = ContentType[str(key).upper()]
        except KeyError:
            raise ConfigError(f"Unknown rotation content type: {key!r}")
        rotation[content] = _value(raw_rotation, "display.rotation", key, 0, _rotation)

    brightness = _value(s, "display", "brightness", defaults.brightness, float)
    if not 0.0 <= brightness <= 1.0:
        raise ConfigError(f"display.brightness must be within 0..1, got {brightness}")

    return DisplayConfig(
        driver=_value(s, "display", "driver", defaults.driver, _enum(DisplayDriver)),
        spi_bus=_value(s, "display", "spi_bus", defaults.spi_bus, _non_negative(int)),
        spi_device=_value(s, "display", "spi_device", defaults.spi_device, _non_negative(int)),
        spi_speed_hz=_value(s, "display", "spi_speed_hz", defaults.spi_speed_hz, _positive(int)),
        brightness=brightness,
        rotation=rotation,
        disabled_mode=_value(s, "display", "disabled_mode", defaults.disabled_mode, _enum(DisabledMode)),
    )


def _build_timing(data: Dict[str, Any]) -> TimingConfig:
    s = _section(data, "timing")
    d = TimingConfig()
    return TimingConfig(
        flash_count=_value(s, "timing", "flash_count", d.flash_count, _non_negative(int)),
        flash_on_s=_value(s, "timing", "flash_on_s", d.flash_on_s, _non_negative(float)),
        flash_off_s=_value(s, "timing", "flash_off_s", d.flash_off_s, _non_negative(float)),
        scroll_frame_delay_s=_value(s, "timing", "scroll_frame_delay_s", d.scroll_frame_delay_s, _non_negative(float)),
        scroll_start_offset=_value(s, "timing", "scroll_start_offset", d.scroll_start_offset, int),
        scroll_min_offset=_value(s, "timing", "scroll_min_offset", d.scroll_min_offset, int),
        font_size_px=_value(s, "timing", "font_size_px", d.font_size_px, _positive(int)),
        text_baseline_y=_value(s, "timing", "text_baseline_y", d.text_baseline_y, int),
        ambient_start_delay_s=_value(s, "timing", "ambient_start_delay_s", d.ambient_start_delay_s, _non_negative(float)),
        ambient_cadence_s=_value(s, "timing", "ambient_cadence_s", d.ambient_cadence_s, _positive(float)),
        night_start_hour=_value(s, "timing", "night_start_hour", d.night_start_hour, _hour),
        night_end_hour=_value(s, "timing", "night_end_hour", d.night_end_hour, _hour),
    )


def _build_scheduler(data: Dict[str, Any]) -> SchedulerConfig:
    s = _section(data, "scheduler")
    d = SchedulerConfig()
    return SchedulerConfig(
        refresh_interval_s=_value(s, "scheduler", "refresh_interval_s", d.refresh_interval_s, _positive(float)),
        recheck_interval_s=_value(s, "scheduler", "recheck_interval_s", d.recheck_interval_s, _positive(float)),
    )


def _build_mqtt(data: Dict[str, Any], creds: Dict[str, Any]) -> MqttConfig:
    s = _section(data, "mqtt")
    t = _section(s, "topics")
    dt = MqttTopics()

    topics = MqttTopics(
        announcement=_value(t, "mqtt.topics", "announcement", dt.announcement, str),
        display_power=_value(t, "mqtt.topics", "display_power", dt.display_power, str),
        display_status=_value(t, "mqtt.topics", "display_status", dt.display_status, str),
        availability=_value(t, "mqtt.topics", "availability", dt.availability, str),
        status=_value(t, "mqtt.topics", "status", dt.status, str),
    )

    qos = _value(s, "mqtt", "qos", 1, int)
    if qos not in (0, 1, 2):
        raise ConfigError(f"mqtt.qos must be 0, 1 or 2, got {qos}")

    port = _value(creds, "credentials", "port", None, _positive(int))
    if port is None:
        port = _value(s, "mqtt", "port", 1883, _positive(int))

    return MqttConfig(
        broker=str(creds["broker"]),
        port=port,
        username=_value(creds, "credentials", "user", None, str),
        password=_value(creds, "credentials", "pass", None, str),
        client_id=_value(s, "mqtt", "client_id", "unicorn_signage", str),
        keepalive_s=_value(s, "mqtt", "keepalive_s", 60, _positive(int)),
        qos=qos,
        topics=topics,
    )


def _build_weather(data: Dict[str, Any], creds: Dict[str, Any]) -> WeatherConfig:
    s = _section(data, "weather")
    return WeatherConfig(
        api_key=str(creds["openweatherapikey"]),
        location=str(creds["openweatherlocation"]),
        base_url=_value(s, "weather", "base_url", "https://api.openweathermap.org/data/2.5/weather", str),
        timeout_s=_value(s, "weather", "timeout_s", 10.0, _positive(float)),
    )


def _build_assets(data: Dict[str, Any]) -> AssetConfig:
    s = _section(data, "assets")
    d = AssetConfig()
    return AssetConfig(
        font_path=_value(s, "assets", "font_path", d.font_path, Path),
        images_dir=_value(s, "assets", "images_dir", d.images_dir, Path),
        weather_dir=_value(s, "assets", "weather_dir", d.weather_dir, Path),
    )


def _build_api(data: Dict[str, Any]) -> ApiConfig:
    s = _section(data, "api")
    d = ApiConfig()
    return ApiConfig(
        enabled=_value(s, "api", "enabled", d.enabled, _bool),
        host=_value(s, "api", "host", d.host, str),
        port=_value(s, "api", "port", d.port, _positive(int)),
    )


def _build_logging(data: Dict[str, Any]) -> LoggingConfig:
    s = _section(data, "logging")
    d = LoggingConfig()
    return LoggingConfig(
        level=_value(s, "logging", "level", d.level, lambda v: LogLevel[str(v).upper()]),
        use_colors=_value(s, "logging", "use_colors", d.use_colors, _bool),
    )


def build_app_config(data: Dict[str, Any], credentials: Dict[str, Any]) -> AppConfig:
    """
    Build the typed configuration from merged YAML data and credentials.

    Raises:
        ConfigError: missing credentials or invalid values
    """
    missing = [k for k in REQUIRED_CREDENTIALS if not credentials.get(k)]
    if missing:
        raise ConfigError(f"Missing credentials: {', '.join(missing)}")

    return AppConfig(
        mqtt=_build_mqtt(data, credentials),
        weather=_build_weather(data, credentials),
        display=_build_display(data),
        timing=_build_timing(data),
        scheduler=_build_scheduler(data),
        assets=_build_assets(data),
        api=_build_api(data),
        logging=_build_logging(data),
        queue_capacity=_value(data, "config", "queue_capacity", 10, _positive(int)),
    )
