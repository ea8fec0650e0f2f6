"""
Weather collection job.

Reads the city roster, fetches the current weather of each city from the
provider and stores one observation per city. Each observation carries the
temperature change against the previous calendar day's latest reading and
is flagged abnormal when that change reaches the configured threshold.

Provider failures only skip the affected city; database failures fail the
chunk and the job.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from weather_batch.batch.runtime import ItemProcessor
from weather_batch.crud.observation import observation as observation_crud
from weather_batch.models.observation import WeatherObservation
from weather_batch.schemas.provider import ProviderWeather
from weather_batch.services.weather_client import FetchError, OpenWeatherClient, TranslateError
from weather_batch.utils.logging_config import get_logger

logger = get_logger(__name__)


def translate_payload(
    city_code: str,
    city_name: str,
    payload: ProviderWeather,
    collected_at: datetime,
) -> WeatherObservation:
    """
    Map a provider payload to an unsaved WeatherObservation.

    Args:
        city_code: Roster city code
        city_name: Display name for the city
        payload: Validated provider payload
        collected_at: Collection instant, also used as the weather time

    Returns:
        WeatherObservation without temperature change
    """
    wind = payload.wind
    return WeatherObservation(
        city_code=city_code,
        city_name=city_name,
        temperature=payload.main.temp,
        feels_like=payload.main.feels_like,
        temp_min=payload.main.temp_min,
        temp_max=payload.main.temp_max,
        humidity=payload.main.humidity,
        pressure=payload.main.pressure,
        weather_main=payload.condition.main,
        weather_description=payload.condition.description,
        cloudiness=payload.clouds.all if payload.clouds else None,
        wind_speed=wind.speed if wind else None,
        wind_direction=wind.deg if wind else None,
        rainfall=payload.rain_1h,
        snowfall=payload.snow_1h,
        visibility=payload.visibility,
        collected_at=collected_at,
        weather_time=collected_at,
        is_abnormal=False,
    )


def apply_temperature_change(
    observation: WeatherObservation,
    previous_temperature: Optional[float],
    threshold: float,
) -> None:
    """
    Set temperature_change and is_abnormal on `observation`.

    Without a previous or a current temperature the change stays None and the
    observation is not abnormal.
    """
    if previous_temperature is None or observation.temperature is None:
        observation.temperature_change = None
        observation.is_abnormal = False
        return

    change = round(observation.temperature - previous_temperature, 2)
    observation.temperature_change = change
    observation.is_abnormal = abs(change) >= threshold


class WeatherCollectionProcessor(ItemProcessor[str, WeatherObservation]):
    """
    Turns a city code into a new observation.

    Args:
        client: Provider client
        abnormal_threshold: Temperature change (°C) that flags an observation abnormal
        city_name: Resolves a display name from a city code
        clock: Returns the collection instant
    """

    def __init__(
        self,
        client: OpenWeatherClient,
        abnormal_threshold: float,
        city_name: Callable[[str], str],
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self.abnormal_threshold = abnormal_threshold
        self.city_name = city_name
        self.clock = clock

    async def process(self, session: AsyncSession, city_code: str) -> Optional[WeatherObservation]:
        logger.info(f"Collecting weather for {city_code}")
        try:
            payload = await self.client.get_current_weather(city_code)
        except FetchError as e:
            logger.warning(f"Skipping {city_code}: {e}")
            return None
        except TranslateError as e:
            logger.warning(f"Skipping {city_code}: {e}")
            return None

        collected_at = self.clock()
        observation = translate_payload(
            city_code, self.city_name(city_code), payload, collected_at
        )

        previous = await observation_crud.get_previous_day_latest(
            session, city_code=city_code, collected_at=collected_at
        )
        apply_temperature_change(
            observation,
            previous.temperature if previous else None,
            self.abnormal_threshold,
        )

        if observation.is_abnormal:
            logger.warning(
                f"Abnormal temperature change for {city_code}: "
                f"{observation.temperature_change:+.1f}°C"
            )
        return observation
