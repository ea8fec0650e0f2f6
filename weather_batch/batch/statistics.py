"""
Daily statistics job.

For every city of the roster, reduces the target date's observations to one
DailyStatistic row. Rows are upserted on (statistics_date, city_code), so
re-running the job for the same date rewrites the same row and only moves
its updated_at.
"""

from datetime import date, datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from weather_batch.batch.runtime import ItemProcessor
from weather_batch.crud.observation import observation as observation_crud
from weather_batch.crud.statistics import daily_statistic as statistic_crud
from weather_batch.models.daily_statistic import DailyStatistic
from weather_batch.utils.logging_config import get_logger
from weather_batch.utils.statistics import summarize_observations

logger = get_logger(__name__)


class DailyStatisticsProcessor(ItemProcessor[str, DailyStatistic]):
    """
    Builds or refreshes the DailyStatistic of one city for `target_date`.

    Args:
        target_date: Calendar day to summarize
        expected_records: Readings expected per day
        city_name: Fallback display name resolver for new rows
        clock: Returns the write instant
    """

    def __init__(
        self,
        target_date: date,
        expected_records: int,
        city_name: Callable[[str], str],
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.target_date = target_date
        self.expected_records = expected_records
        self.city_name = city_name
        self.clock = clock

    async def process(self, session: AsyncSession, city_code: str) -> Optional[DailyStatistic]:
        observations = await observation_crud.get_for_city_on(
            session, city_code=city_code, day=self.target_date
        )
        if not observations:
            logger.info(f"No observations for {city_code} on {self.target_date}; skipping")
            return None

        now = self.clock()
        statistic = await statistic_crud.get_by_date_and_city(
            session, statistics_date=self.target_date, city_code=city_code
        )
        if statistic is None:
            statistic = DailyStatistic(
                statistics_date=self.target_date,
                city_code=city_code,
                created_at=now,
            )
            logger.info(f"Creating statistics for {city_code} on {self.target_date}")
        else:
            logger.info(f"Updating statistics for {city_code} on {self.target_date}")

        summary = summarize_observations(observations)
        statistic.city_name = observations[0].city_name or self.city_name(city_code)
        statistic.avg_temperature = summary.avg_temperature
        statistic.max_temperature = summary.max_temperature
        statistic.min_temperature = summary.min_temperature
        statistic.calculate_temperature_range()
        statistic.avg_humidity = summary.avg_humidity
        statistic.avg_pressure = summary.avg_pressure
        statistic.dominant_weather = summary.dominant_weather
        statistic.clear_hours = summary.clear_hours
        statistic.cloudy_hours = summary.cloudy_hours
        statistic.rainy_hours = summary.rainy_hours
        statistic.abnormal_weather_count = summary.abnormal_weather_count
        statistic.max_temperature_change = summary.max_temperature_change
        statistic.total_records = summary.total_records
        statistic.calculate_data_collection_rate(self.expected_records)
        statistic.updated_at = now

        return statistic
