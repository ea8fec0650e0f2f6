"""
Sample observation generator.

Fills the observation table with hourly readings for the roster cities over
the last three days, plus four extreme readings from the last two hours that
trigger each alert rule. Useful for exercising the statistics and alert jobs
without a provider API key.
"""

import random
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from weather_batch.config import Settings, settings as default_settings
from weather_batch.crud.observation import observation as observation_crud
from weather_batch.models.observation import WeatherObservation
from weather_batch.utils.logging_config import get_logger

logger = get_logger(__name__)

SAMPLE_DAYS = 3

WEATHER_CONDITIONS = ["Clear", "Clouds", "Rain", "Snow", "Thunderstorm"]

WEATHER_DESCRIPTIONS = {
    "Clear": "맑음",
    "Clouds": "구름많음",
    "Rain": "비",
    "Snow": "눈",
    "Thunderstorm": "뇌우",
}


def _observation(
    city_code: str,
    city_name: str,
    collected_at: datetime,
    temperature: float,
    humidity: int,
    pressure: int,
    weather_main: str,
    temperature_change: Optional[float],
    abnormal_threshold: float,
    description: Optional[str] = None,
) -> WeatherObservation:
    return WeatherObservation(
        city_code=city_code,
        city_name=city_name,
        temperature=temperature,
        humidity=humidity,
        pressure=pressure,
        weather_main=weather_main,
        weather_description=description or WEATHER_DESCRIPTIONS.get(weather_main, "기타"),
        collected_at=collected_at,
        weather_time=collected_at,
        temperature_change=temperature_change,
        is_abnormal=temperature_change is not None and abs(temperature_change) >= abnormal_threshold,
    )


def build_random_observations(
    now: datetime, rng: random.Random, config: Settings = default_settings
) -> List[WeatherObservation]:
    """One reading per city per hour for each of the SAMPLE_DAYS days before `now`."""
    threshold = config.ABNORMAL_TEMP_CHANGE_THRESHOLD
    observations = []
    for days_ago in range(SAMPLE_DAYS, 0, -1):
        day = (now - timedelta(days=days_ago)).replace(hour=0, minute=0, second=0, microsecond=0)
        for hour in range(24):
            collected_at = day + timedelta(hours=hour)
            for city_code in config.CITY_CODES:
                observations.append(
                    _observation(
                        city_code,
                        config.city_name(city_code),
                        collected_at,
                        temperature=round(-5 + rng.random() * 35, 1),
                        humidity=rng.randint(30, 90),
                        pressure=rng.randint(1000, 1030),
                        weather_main=rng.choice(WEATHER_CONDITIONS),
                        temperature_change=round(-10 + rng.random() * 20, 1),
                        abnormal_threshold=threshold,
                    )
                )
    return observations


def build_extreme_observations(
    now: datetime, config: Settings = default_settings
) -> List[WeatherObservation]:
    """Readings that trigger the heat wave, cold wave, heavy rain and abnormal rules."""
    threshold = config.ABNORMAL_TEMP_CHANGE_THRESHOLD
    return [
        _observation("Seoul", config.city_name("Seoul"), now - timedelta(hours=1),
                     37.5, 85, 1010, "Clear", 8.0, threshold),
        _observation("Daegu", config.city_name("Daegu"), now - timedelta(hours=2),
                     -12.3, 45, 1025, "Snow", -15.0, threshold),
        _observation("Busan", config.city_name("Busan"), now - timedelta(minutes=30),
                     22.0, 95, 995, "Rain", 3.0, threshold, description="폭우"),
        _observation("Incheon", config.city_name("Incheon"), now - timedelta(minutes=15),
                     15.0, 70, 1008, "Clouds", -22.5, threshold),
    ]


async def generate_sample_data(
    db: AsyncSession,
    rng: Optional[random.Random] = None,
    clock: Callable[[], datetime] = datetime.now,
    config: Settings = default_settings,
) -> int:
    """
    Insert sample observations. The caller commits.

    Returns:
        Number of inserted observations
    """
    now = clock()
    observations = build_random_observations(now, rng or random.Random(), config)
    observations.extend(build_extreme_observations(now, config))
    await observation_crud.save_all(db, observations)
    logger.info(f"Generated {len(observations)} sample weather observations")
    return len(observations)


async def clear_sample_data(db: AsyncSession) -> int:
    """
    Delete every observation. The caller commits.

    Returns:
        Number of deleted observations
    """
    deleted = await observation_crud.delete_all(db)
    logger.info(f"Cleared {deleted} weather observations")
    return deleted
