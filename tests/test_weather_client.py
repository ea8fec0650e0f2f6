"""
Tests for the OpenWeatherMap client, with the provider mocked by respx.
"""

import httpx
import pytest
import respx
from httpx import Response

from weather_batch.services.weather_client import FetchError, OpenWeatherClient, TranslateError

BASE_URL = "https://weather.test/data/2.5/weather"

SEOUL_PAYLOAD = {
    "coord": {"lon": 126.9778, "lat": 37.5683},
    "weather": [{"id": 800, "main": "Clear", "description": "맑음", "icon": "01d"}],
    "main": {
        "temp": 28.4,
        "feels_like": 30.1,
        "temp_min": 26.7,
        "temp_max": 29.8,
        "pressure": 1008,
        "humidity": 71,
    },
    "visibility": 10000,
    "wind": {"speed": 2.57, "deg": 250},
    "rain": {"1h": 0.25},
    "clouds": {"all": 0},
    "name": "Seoul",
}


@pytest.fixture
def weather_client() -> OpenWeatherClient:
    return OpenWeatherClient(api_key="test-key", base_url=BASE_URL, lang="kr", timeout=2.0)


def provider_route():
    return respx.route(host="weather.test", path="/data/2.5/weather")


async def test_fetches_and_validates_payload(weather_client: OpenWeatherClient):
    async with respx.mock:
        route = provider_route().mock(return_value=Response(200, json=SEOUL_PAYLOAD))

        payload = await weather_client.get_current_weather("Seoul")

        assert route.called
        assert dict(route.calls.last.request.url.params) == {
            "q": "Seoul,KR",
            "appid": "test-key",
            "units": "metric",
            "lang": "kr",
        }

    assert payload.main.temp == 28.4
    assert payload.condition.main == "Clear"
    assert payload.rain_1h == 0.25
    assert payload.snow_1h is None
    assert payload.wind.deg == 250


@pytest.mark.parametrize("status_code", [401, 404, 429, 500, 503])
async def test_error_status_raises_fetch_error(weather_client: OpenWeatherClient, status_code):
    async with respx.mock:
        provider_route().mock(return_value=Response(status_code, json={"cod": status_code}))

        with pytest.raises(FetchError, match=str(status_code)):
            await weather_client.get_current_weather("Seoul")


async def test_timeout_raises_fetch_error(weather_client: OpenWeatherClient):
    async with respx.mock:
        provider_route().mock(side_effect=httpx.ReadTimeout)

        with pytest.raises(FetchError, match="timed out"):
            await weather_client.get_current_weather("Busan")


async def test_connection_error_raises_fetch_error(weather_client: OpenWeatherClient):
    async with respx.mock:
        provider_route().mock(side_effect=httpx.ConnectError)

        with pytest.raises(FetchError, match="Network error"):
            await weather_client.get_current_weather("Busan")


@pytest.mark.parametrize(
    "body",
    [
        {"weather": [], "main": {"temp": 1.0}},
        {"weather": [{"main": "Clear"}]},
        {"weather": [{"main": "Clear"}], "main": {"temp": "warm"}},
        {"cod": "404", "message": "city not found"},
    ],
)
async def test_malformed_payload_raises_translate_error(weather_client: OpenWeatherClient, body):
    async with respx.mock:
        provider_route().mock(return_value=Response(200, json=body))

        with pytest.raises(TranslateError):
            await weather_client.get_current_weather("Seoul")


async def test_non_json_body_raises_translate_error(weather_client: OpenWeatherClient):
    async with respx.mock:
        provider_route().mock(return_value=Response(200, text="<html>maintenance</html>"))

        with pytest.raises(TranslateError):
            await weather_client.get_current_weather("Seoul")


def test_build_params_without_key():
    client = OpenWeatherClient(api_key="", base_url=BASE_URL, lang="en")

    assert client.build_params("Ulsan") == {
        "q": "Ulsan,KR",
        "appid": "",
        "units": "metric",
        "lang": "en",
    }
