"""
Daily statistics repository.

Lookup for the statistics upsert plus the read-side queries behind the
result listings (recent days, trends, rankings, national average).
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import and_, desc, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from weather_batch.crud.base import CRUDBase
from weather_batch.models.daily_statistic import DailyStatistic


class CRUDDailyStatistic(CRUDBase[DailyStatistic]):
    """
    Repository for DailyStatistic.
    """

    async def get_by_date_and_city(
        self, db: AsyncSession, *, statistics_date: date, city_code: str
    ) -> Optional[DailyStatistic]:
        """
        Get the statistic row for one city and date.

        Args:
            db: Database session
            statistics_date: Statistics date
            city_code: City code

        Returns:
            DailyStatistic or None
        """
        result = await db.execute(
            select(DailyStatistic).where(
                and_(
                    DailyStatistic.statistics_date == statistics_date,
                    DailyStatistic.city_code == city_code,
                )
            )
        )
        return result.scalars().first()

    async def get_for_date(
        self, db: AsyncSession, *, statistics_date: date
    ) -> List[DailyStatistic]:
        """Get every city's statistics for a date, ordered by city name."""
        result = await db.execute(
            select(DailyStatistic)
            .where(DailyStatistic.statistics_date == statistics_date)
            .order_by(DailyStatistic.city_name)
        )
        return result.scalars().all()

    async def get_recent(
        self, db: AsyncSession, *, from_date: date
    ) -> List[DailyStatistic]:
        """
        Get statistics on or after `from_date`.

        Returns:
            Rows ordered by date descending, then city name
        """
        result = await db.execute(
            select(DailyStatistic)
            .where(DailyStatistic.statistics_date >= from_date)
            .order_by(desc(DailyStatistic.statistics_date), DailyStatistic.city_name)
        )
        return result.scalars().all()

    async def get_trend(
        self, db: AsyncSession, *, city_code: str, start_date: date, end_date: date
    ) -> List[DailyStatistic]:
        """Get one city's statistics between two dates, oldest first."""
        result = await db.execute(
            select(DailyStatistic)
            .where(
                and_(
                    DailyStatistic.city_code == city_code,
                    DailyStatistic.statistics_date >= start_date,
                    DailyStatistic.statistics_date <= end_date,
                )
            )
            .order_by(DailyStatistic.statistics_date)
        )
        return result.scalars().all()

    async def get_abnormal_ranking(
        self, db: AsyncSession, *, start_date: date, end_date: date
    ) -> List[DailyStatistic]:
        """Get rows with abnormal readings in a date range, most abnormal first."""
        result = await db.execute(
            select(DailyStatistic)
            .where(
                and_(
                    DailyStatistic.statistics_date >= start_date,
                    DailyStatistic.statistics_date <= end_date,
                    DailyStatistic.abnormal_weather_count > 0,
                )
            )
            .order_by(desc(DailyStatistic.abnormal_weather_count))
        )
        return result.scalars().all()

    async def get_low_collection_rate(
        self, db: AsyncSession, *, start_date: date, end_date: date, threshold: float
    ) -> List[DailyStatistic]:
        """Get rows whose collection rate is below `threshold` percent, lowest first."""
        result = await db.execute(
            select(DailyStatistic)
            .where(
                and_(
                    DailyStatistic.statistics_date >= start_date,
                    DailyStatistic.statistics_date <= end_date,
                    DailyStatistic.data_collection_rate < threshold,
                )
            )
            .order_by(DailyStatistic.data_collection_rate)
        )
        return result.scalars().all()

    async def get_national_average_temperature(
        self, db: AsyncSession, *, start_date: date, end_date: date
    ) -> Optional[float]:
        """
        Average of the daily average temperatures across all cities.

        Returns:
            Mean temperature rounded to 2 decimals, or None without data
        """
        result = await db.execute(
            select(func.avg(DailyStatistic.avg_temperature)).where(
                and_(
                    DailyStatistic.statistics_date >= start_date,
                    DailyStatistic.statistics_date <= end_date,
                )
            )
        )
        value = result.scalar()
        return round(float(value), 2) if value is not None else None


daily_statistic = CRUDDailyStatistic(DailyStatistic)
