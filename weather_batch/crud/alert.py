"""
Weather alert repository.

Holds the deduplication query used by the alerts job, the unsent-alert
query used by notification dispatch, and the listing/aggregate queries
behind the alert result pages.
"""

from datetime import datetime
from typing import List, Tuple

from sqlalchemy import and_, case, desc, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from weather_batch.crud.base import CRUDBase
from weather_batch.models.alert import AlertLevel, AlertType, WeatherAlert


class CRUDAlert(CRUDBase[WeatherAlert]):
    """
    Repository for WeatherAlert.
    """

    async def get_recent_similar(
        self,
        db: AsyncSession,
        *,
        city_code: str,
        alert_type: AlertType,
        since: datetime,
    ) -> List[WeatherAlert]:
        """
        Get unresolved alerts of one (city, type) issued after `since`.

        A non-empty result suppresses a new alert of the same kind.

        Args:
            db: Database session
            city_code: City code
            alert_type: Alert type
            since: Exclusive lower bound on alert_time

        Returns:
            Matching unresolved alerts
        """
        result = await db.execute(
            select(WeatherAlert).where(
                and_(
                    WeatherAlert.city_code == city_code,
                    WeatherAlert.alert_type == alert_type,
                    WeatherAlert.is_resolved.is_(False),
                    WeatherAlert.alert_time > since,
                )
            )
        )
        return result.scalars().all()

    async def get_active(self, db: AsyncSession) -> List[WeatherAlert]:
        """Get all unresolved alerts, newest first."""
        result = await db.execute(
            select(WeatherAlert)
            .where(WeatherAlert.is_resolved.is_(False))
            .order_by(desc(WeatherAlert.alert_time), desc(WeatherAlert.id))
        )
        return result.scalars().all()

    async def get_unsent(self, db: AsyncSession) -> List[WeatherAlert]:
        """Get alerts not yet delivered, oldest first."""
        result = await db.execute(
            select(WeatherAlert)
            .where(WeatherAlert.is_sent.is_(False))
            .order_by(WeatherAlert.alert_time, WeatherAlert.id)
        )
        return result.scalars().all()

    async def get_between(
        self, db: AsyncSession, *, start_time: datetime, end_time: datetime
    ) -> List[WeatherAlert]:
        """Get alerts issued within [start_time, end_time], newest first."""
        result = await db.execute(
            select(WeatherAlert)
            .where(
                and_(
                    WeatherAlert.alert_time >= start_time,
                    WeatherAlert.alert_time <= end_time,
                )
            )
            .order_by(desc(WeatherAlert.alert_time), desc(WeatherAlert.id))
        )
        return result.scalars().all()

    async def count_by_type_and_level(
        self, db: AsyncSession, *, start_time: datetime, end_time: datetime
    ) -> List[Tuple[AlertType, AlertLevel, int]]:
        """Count alerts per (type, level) within a time window."""
        result = await db.execute(
            select(WeatherAlert.alert_type, WeatherAlert.alert_level, func.count(WeatherAlert.id))
            .where(
                and_(
                    WeatherAlert.alert_time >= start_time,
                    WeatherAlert.alert_time <= end_time,
                )
            )
            .group_by(WeatherAlert.alert_type, WeatherAlert.alert_level)
            .order_by(WeatherAlert.alert_type, WeatherAlert.alert_level)
        )
        return [tuple(row) for row in result.all()]

    async def count_by_city(
        self, db: AsyncSession, *, start_time: datetime, end_time: datetime
    ) -> List[Tuple[str, AlertType, int]]:
        """Count alerts per (city, type) within a time window, most frequent first."""
        total = func.count(WeatherAlert.id)
        result = await db.execute(
            select(WeatherAlert.city_name, WeatherAlert.alert_type, total)
            .where(
                and_(
                    WeatherAlert.alert_time >= start_time,
                    WeatherAlert.alert_time <= end_time,
                )
            )
            .group_by(WeatherAlert.city_name, WeatherAlert.city_code, WeatherAlert.alert_type)
            .order_by(desc(total))
        )
        return [tuple(row) for row in result.all()]

    async def get_send_success_rate(
        self, db: AsyncSession, *, start_time: datetime, end_time: datetime
    ) -> Tuple[int, int]:
        """
        Count alerts and sent alerts within a time window.

        Returns:
            Tuple of (total, sent)
        """
        result = await db.execute(
            select(
                func.count(WeatherAlert.id),
                func.sum(case((WeatherAlert.is_sent.is_(True), 1), else_=0)),
            ).where(
                and_(
                    WeatherAlert.alert_time >= start_time,
                    WeatherAlert.alert_time <= end_time,
                )
            )
        )
        total, sent = result.one()
        return total or 0, sent or 0


alert = CRUDAlert(WeatherAlert)
