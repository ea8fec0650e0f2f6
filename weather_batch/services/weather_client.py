"""
OpenWeatherMap current-weather client.

Fetches the current conditions for one city and validates the payload.
Every failure surfaces as one of two exceptions:

- FetchError: network error, timeout or non-2xx response
- TranslateError: the response body is not a valid current-weather payload
"""

from typing import Optional

import httpx

from weather_batch.config import settings
from weather_batch.schemas.provider import ProviderWeather
from weather_batch.utils.logging_config import get_logger

logger = get_logger(__name__)


class FetchError(Exception):
    """The provider could not be reached or answered with an error status."""


class TranslateError(Exception):
    """The provider answered with a payload that cannot be translated."""


class OpenWeatherClient:
    """
    Thin async wrapper around the provider's current-weather endpoint.

    Args:
        api_key: Provider API key (`appid`)
        base_url: Current-weather endpoint URL
        lang: Language of the weather description
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        lang: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.WEATHER_API_KEY
        self.base_url = base_url or settings.WEATHER_API_BASE_URL
        self.lang = lang or settings.WEATHER_API_LANG
        self.timeout = timeout if timeout is not None else settings.WEATHER_API_TIMEOUT

    def build_params(self, city_code: str) -> dict:
        return {
            "q": f"{city_code},KR",
            "appid": self.api_key or "",
            "units": "metric",
            "lang": self.lang,
        }

    async def get_current_weather(self, city_code: str) -> ProviderWeather:
        """
        Fetch current weather for a city.

        Args:
            city_code: Roster city code, e.g. "Seoul"

        Returns:
            Validated provider payload

        Raises:
            FetchError: on network failure, timeout or non-2xx status
            TranslateError: on a malformed payload
        """
        logger.debug(f"Fetching current weather for {city_code}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.base_url, params=self.build_params(city_code))
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError(f"Request for {city_code} timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Provider returned {e.response.status_code} for {city_code}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Network error for {city_code}: {e}") from e

        try:
            return ProviderWeather.model_validate(response.json())
        except ValueError as e:
            # ValidationError and JSONDecodeError are both ValueErrors
            raise TranslateError(f"Malformed payload for {city_code}: {e}") from e
