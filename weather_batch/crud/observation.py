"""
Weather observation repository.

Queries over collected observations used by the collection, statistics and
alert jobs and by the read-only listing endpoints.
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import and_, desc, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import aliased

from weather_batch.crud.base import CRUDBase
from weather_batch.models.observation import WeatherObservation


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the [00:00:00, 23:59:59] window of a calendar day."""
    return datetime.combine(day, time.min), datetime.combine(day, time(23, 59, 59))


class CRUDObservation(CRUDBase[WeatherObservation]):
    """
    Repository for WeatherObservation.
    """

    async def get_latest_for_city(
        self, db: AsyncSession, *, city_code: str
    ) -> Optional[WeatherObservation]:
        """
        Get the most recent observation for a city.

        Args:
            db: Database session
            city_code: City code

        Returns:
            Latest observation or None
        """
        result = await db.execute(
            select(WeatherObservation)
            .where(WeatherObservation.city_code == city_code)
            .order_by(desc(WeatherObservation.collected_at))
            .limit(1)
        )
        return result.scalars().first()

    async def get_for_city_between(
        self,
        db: AsyncSession,
        *,
        city_code: str,
        start_time: datetime,
        end_time: datetime,
    ) -> List[WeatherObservation]:
        """
        Get a city's observations collected within [start_time, end_time].

        Args:
            db: Database session
            city_code: City code
            start_time: Inclusive window start
            end_time: Inclusive window end

        Returns:
            Observations ordered by collected_at, newest first
        """
        result = await db.execute(
            select(WeatherObservation)
            .where(
                and_(
                    WeatherObservation.city_code == city_code,
                    WeatherObservation.collected_at >= start_time,
                    WeatherObservation.collected_at <= end_time,
                )
            )
            .order_by(desc(WeatherObservation.collected_at), desc(WeatherObservation.id))
        )
        return result.scalars().all()

    async def get_for_city_on(
        self, db: AsyncSession, *, city_code: str, day: date
    ) -> List[WeatherObservation]:
        """Get a city's observations for one calendar day, newest first."""
        start_time, end_time = day_bounds(day)
        return await self.get_for_city_between(
            db, city_code=city_code, start_time=start_time, end_time=end_time
        )

    async def get_previous_day_latest(
        self, db: AsyncSession, *, city_code: str, collected_at: datetime
    ) -> Optional[WeatherObservation]:
        """
        Get the most recent observation of the calendar day before `collected_at`.

        Args:
            db: Database session
            city_code: City code
            collected_at: Reference instant

        Returns:
            Latest observation of the previous day or None
        """
        observations = await self.get_for_city_on(
            db, city_code=city_code, day=collected_at.date() - timedelta(days=1)
        )
        return observations[0] if observations else None

    async def get_recent(
        self, db: AsyncSession, *, since: datetime
    ) -> List[WeatherObservation]:
        """
        Get all observations collected after `since`.

        Returns:
            Observations ordered by collected_at, newest first
        """
        result = await db.execute(
            select(WeatherObservation)
            .where(WeatherObservation.collected_at > since)
            .order_by(desc(WeatherObservation.collected_at), desc(WeatherObservation.id))
        )
        return result.scalars().all()

    async def get_abnormal(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100
    ) -> List[WeatherObservation]:
        """Get observations flagged abnormal, newest first."""
        result = await db.execute(
            select(WeatherObservation)
            .where(WeatherObservation.is_abnormal.is_(True))
            .order_by(desc(WeatherObservation.collected_at))
            .offset(skip)
            .limit(limit)
        )
        return result.scalars().all()

    async def get_latest_per_city(
        self, db: AsyncSession, *, order_by_temperature: bool = False
    ) -> List[WeatherObservation]:
        """
        Get the latest observation of every city (group-wise maximum).

        Args:
            db: Database session
            order_by_temperature: Order by temperature descending instead of city code

        Returns:
            One observation per city
        """
        latest = aliased(WeatherObservation)
        newest = (
            select(func.max(latest.collected_at))
            .where(latest.city_code == WeatherObservation.city_code)
            .scalar_subquery()
        )
        query = select(WeatherObservation).where(WeatherObservation.collected_at == newest)
        if order_by_temperature:
            query = query.order_by(desc(WeatherObservation.temperature))
        else:
            query = query.order_by(WeatherObservation.city_code)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_between(
        self, db: AsyncSession, *, start_time: datetime, end_time: datetime
    ) -> List[WeatherObservation]:
        """Get all observations collected within [start_time, end_time], newest first."""
        result = await db.execute(
            select(WeatherObservation)
            .where(
                and_(
                    WeatherObservation.collected_at >= start_time,
                    WeatherObservation.collected_at <= end_time,
                )
            )
            .order_by(desc(WeatherObservation.collected_at))
        )
        return result.scalars().all()


observation = CRUDObservation(WeatherObservation)
