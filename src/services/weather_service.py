"""
Weather Service - OpenWeather current conditions → ready-to-display icon

Fetches the current weather for the configured location, maps the condition
code to one of the bundled 16×16 icons and picks the night variant when the
OpenWeather icon code ends in "n".
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol

import aiohttp
from PIL import Image

from models.config import WeatherConfig
from models.errors import WeatherFetchError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.WEATHER)

WEATHER_ICON_NAMES = (
    "thunder",
    "drizzle",
    "rain",
    "snow",
    "mist",
    "clear",
    "partly_cloudy",
    "cloudy",
)

NIGHT_SUFFIX = "_night"


def icon_name_for(condition_id: int) -> str:
    """
    Map an OpenWeather condition id to an icon name.

    Groups: 2xx thunderstorm, 3xx drizzle, 5xx rain (511 freezing rain → snow),
    6xx snow, 7xx atmosphere, 800 clear, 801-802 few/scattered clouds,
    803-804 broken/overcast.

    Raises:
        WeatherFetchError: unknown condition id
    """
    group = condition_id // 100
    if group == 2:
        return "thunder"
    if group == 3:
        return "drizzle"
    if group == 5:
        return "snow" if condition_id == 511 else "rain"
    if group == 6:
        return "snow"
    if group == 7:
        return "mist"
    if condition_id == 800:
        return "clear"
    if condition_id in (801, 802):
        return "partly_cloudy"
    if condition_id in (803, 804):
        return "cloudy"
    raise WeatherFetchError(f"Unknown weather condition id: {condition_id}")


class WeatherIconSet:
    """
    Bundled weather icons by name.

    Night variants are optional: a missing "<name>_night" falls back to the
    day image.
    """

    def __init__(self, icons: Mapping[str, Image.Image]):
        self._icons: Dict[str, Image.Image] = dict(icons)

    def names(self):
        return sorted(self._icons)

    def missing(self):
        """Required day icons that are not present"""
        return [n for n in WEATHER_ICON_NAMES if n not in self._icons]

    def resolve(self, name: str, night: bool = False) -> Image.Image:
        if night:
            image = self._icons.get(name + NIGHT_SUFFIX)
            if image is not None:
                return image

        image = self._icons.get(name)
        if image is None:
            raise WeatherFetchError(f"No bundled icon for '{name}'")
        return image


@dataclass(frozen=True)
class WeatherReading:
    """Outcome of one successful fetch"""
    image: Image.Image
    condition_id: int
    icon_code: str
    icon_name: str
    description: str
    fetched_at: float

    @property
    def is_night(self) -> bool:
        return self.icon_code.endswith("n")


class AmbientSource(Protocol):
    """Anything that can produce the ambient image (weather API, test fakes)"""

    async def fetch(self) -> WeatherReading:
        ...


def parse_current_weather(data: Any) -> tuple:
    """
    Extract (condition_id, icon_code, description) from a current-weather body.

    Raises:
        WeatherFetchError: body lacks the weather[0].id / weather[0].icon fields
    """
    try:
        weather = data["weather"][0]
        condition_id = int(weather["id"])
        icon_code = str(weather["icon"])
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise WeatherFetchError(f"Unexpected weather response: {e!r}") from e

    return condition_id, icon_code, str(weather.get("description", ""))


class WeatherService:
    """
    OpenWeather client producing display-ready icons.

    Example:
        service = WeatherService(config.weather, icon_set)
        reading = await service.fetch()
        cache.store(reading.image, reading.description)
        ...
        await service.close()
    """

    def __init__(
        self,
        config: WeatherConfig,
        icons: WeatherIconSet,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config
        self.icons = icons
        self._session = session
        self._owns_session = session is None

        self.last_reading: Optional[WeatherReading] = None
        self.fetch_count = 0
        self.failure_count = 0

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_s),
            )
            self._owns_session = True
        return self._session

    async def fetch(self) -> WeatherReading:
        """
        Fetch current conditions and resolve the icon.

        Raises:
            WeatherFetchError: network failure, HTTP error, bad body, unknown condition
        """
        self.fetch_count += 1
        try:
            data = await self._request()
            condition_id, icon_code, description = parse_current_weather(data)
            icon_name = icon_name_for(condition_id)
            image = self.icons.resolve(icon_name, night=icon_code.endswith("n"))
        except WeatherFetchError:
            self.failure_count += 1
            raise

        reading = WeatherReading(
            image=image,
            condition_id=condition_id,
            icon_code=icon_code,
            icon_name=icon_name,
            description=description,
            fetched_at=time.time(),
        )
        self.last_reading = reading

        log.info(
            "Weather fetched",
            condition=condition_id,
            icon=icon_code,
            image=icon_name,
            description=description or "-",
        )
        return reading

    async def _request(self) -> Any:
        params = {"q": self.config.location, "appid": self.config.api_key}

        try:
            session = await self._get_session()
            async with session.get(self.config.base_url, params=params) as response:
                if response.status != 200:
                    body = await response.text()
                    raise WeatherFetchError(f"HTTP {response.status}: {body[:120]}")
                return await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise WeatherFetchError("Timeout fetching weather") from e
        except aiohttp.ClientError as e:
            raise WeatherFetchError(f"Network error fetching weather: {e}") from e
        except ValueError as e:
            raise WeatherFetchError(f"Weather response is not JSON: {e}") from e

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
