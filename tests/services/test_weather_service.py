import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from PIL import Image

from models.config import WeatherConfig
from models.errors import WeatherFetchError
from services.weather_service import (
    WEATHER_ICON_NAMES,
    WeatherIconSet,
    WeatherService,
    icon_name_for,
    parse_current_weather,
)


def icon(value):
    return Image.new("RGBA", (16, 16), (value, value, value, 255))


@pytest.fixture
def icons():
    images = {name: icon(i + 1) for i, name in enumerate(WEATHER_ICON_NAMES)}
    images["clear_night"] = icon(200)
    return WeatherIconSet(images)


def body(condition_id=800, icon_code="01d", description="clear sky"):
    return {"weather": [{"id": condition_id, "icon": icon_code, "description": description}]}


@pytest.mark.parametrize("condition_id, name", [
    (200, "thunder"),
    (232, "thunder"),
    (301, "drizzle"),
    (500, "rain"),
    (511, "snow"),
    (522, "rain"),
    (601, "snow"),
    (741, "mist"),
    (800, "clear"),
    (801, "partly_cloudy"),
    (802, "partly_cloudy"),
    (803, "cloudy"),
    (804, "cloudy"),
])
def test_condition_mapping(condition_id, name):
    assert icon_name_for(condition_id) == name


@pytest.mark.parametrize("condition_id", [100, 805, 900])
def test_unknown_condition(condition_id):
    with pytest.raises(WeatherFetchError):
        icon_name_for(condition_id)


def test_night_variant_and_fallback(icons):
    assert icons.resolve("clear", night=True).getpixel((0, 0))[0] == 200
    # No partly_cloudy_night bundled: day image is used
    day = icons.resolve("partly_cloudy")
    assert icons.resolve("partly_cloudy", night=True) is day


def test_missing_icons_reported():
    partial = WeatherIconSet({"clear": icon(1)})
    assert "rain" in partial.missing()
    with pytest.raises(WeatherFetchError):
        partial.resolve("rain")


@pytest.mark.parametrize("data", [{}, {"weather": []}, {"weather": [{"id": "x", "icon": "01d"}]}, None])
def test_unusable_body(data):
    with pytest.raises(WeatherFetchError):
        parse_current_weather(data)


def test_parse_body():
    assert parse_current_weather(body(500, "10n", "light rain")) == (500, "10n", "light rain")


async def test_fetch_picks_night_icon(icons, monkeypatch):
    service = WeatherService(WeatherConfig(api_key="k", location="Oslo,NO"), icons)

    async def fake_request():
        return body(800, "01n")

    monkeypatch.setattr(service, "_request", fake_request)
    reading = await service.fetch()

    assert reading.icon_name == "clear"
    assert reading.is_night
    assert reading.image.getpixel((0, 0))[0] == 200
    assert service.last_reading is reading


async def test_fetch_counts_failures(icons, monkeypatch):
    service = WeatherService(WeatherConfig(api_key="k", location="Oslo,NO"), icons)

    async def fake_request():
        return body(999, "01d")

    monkeypatch.setattr(service, "_request", fake_request)
    with pytest.raises(WeatherFetchError):
        await service.fetch()

    assert service.fetch_count == 1
    assert service.failure_count == 1
    assert service.last_reading is None


async def test_fetch_over_http(icons):
    queries = []

    async def handler(request):
        queries.append(dict(request.query))
        return web.json_response(body(502, "03d", "scattered clouds"))

    app = web.Application()
    app.router.add_get("/weather", handler)

    async with TestServer(app) as server:
        config = WeatherConfig(api_key="secret", location="Oslo,NO", base_url=str(server.make_url("/weather")))
        service = WeatherService(config, icons)
        try:
            reading = await service.fetch()
        finally:
            await service.close()

    assert queries == [{"q": "Oslo,NO", "appid": "secret"}]
    assert reading.icon_name == "partly_cloudy"
    assert reading.description == "scattered clouds"


async def test_http_error_status(icons):
    async def handler(request):
        return web.json_response({"cod": 401, "message": "Invalid API key"}, status=401)

    app = web.Application()
    app.router.add_get("/weather", handler)

    async with TestServer(app) as server:
        config = WeatherConfig(api_key="bad", location="Oslo,NO", base_url=str(server.make_url("/weather")))
        service = WeatherService(config, icons)
        try:
            with pytest.raises(WeatherFetchError, match="HTTP 401"):
                await service.fetch()
        finally:
            await service.close()


async def test_connection_refused(icons, unused_tcp_port):
    config = WeatherConfig(
        api_key="k",
        location="Oslo,NO",
        base_url=f"http://127.0.0.1:{unused_tcp_port}/weather",
        timeout_s=2,
    )
    service = WeatherService(config, icons)
    try:
        with pytest.raises(WeatherFetchError, match="Network error"):
            await service.fetch()
    finally:
        await service.close()
