"""
Batch results router.

Read-side endpoints over the statistics and alert tables produced by the
batch jobs, plus alert resolution.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from weather_batch.crud.alert import alert as alert_crud
from weather_batch.crud.observation import observation as observation_crud
from weather_batch.crud.statistics import daily_statistic as statistic_crud
from weather_batch.database import get_db
from weather_batch.dependencies.auth import require_operator
from weather_batch.models.alert import AlertStateError
from weather_batch.schemas.weather import (
    AlertResponse,
    AlertSummary,
    AlertTypeCount,
    CityAlertCount,
    DailyStatisticResponse,
    NationalAverageResponse,
    ResultsOverviewResponse,
)

router = APIRouter(
    prefix="/results",
    tags=["Batch Results"],
    responses={
        404: {"description": "Not found"}
    },
)

limiter = Limiter(key_func=get_remote_address)


def _window(days: int):
    """Return (start, end) instants covering the last `days` days."""
    end_time = datetime.now()
    return end_time - timedelta(days=days), end_time


def _alert_summary(total: int, sent: int) -> dict:
    rate = round(sent / total * 100, 2) if total else None
    return {"total": total, "sent": sent, "send_success_rate": rate}


@router.get("/overview", response_model=ResultsOverviewResponse)
@limiter.limit("60/minute")
async def get_overview(
    request: Request,
    days: int = Query(7, ge=1, le=365, description="Window for the alert totals"),
    db: AsyncSession = Depends(get_db),
):
    """
    Dashboard totals: record counts, today's statistics, active and unsent alerts.

    Rate limit: 60 requests per minute
    """
    start_time, end_time = _window(days)
    total, sent = await alert_crud.get_send_success_rate(db, start_time=start_time, end_time=end_time)

    counts_by_type = defaultdict(int)
    for alert_type, _level, count in await alert_crud.count_by_type_and_level(
        db, start_time=start_time, end_time=end_time
    ):
        counts_by_type[alert_type.value] += count

    return {
        "observation_count": await observation_crud.count(db),
        "statistics_count": await statistic_crud.count(db),
        "alert_count": await alert_crud.count(db),
        "today_statistics": await statistic_crud.get_for_date(db, statistics_date=end_time.date()),
        "active_alerts": await alert_crud.get_active(db),
        "unsent_alerts": await alert_crud.get_unsent(db),
        "alert_summary": _alert_summary(total, sent),
        "counts_by_type": dict(counts_by_type),
    }


@router.get("/statistics", response_model=List[DailyStatisticResponse])
@limiter.limit("100/minute")
async def get_recent_statistics(
    request: Request,
    days: int = Query(7, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """
    Get daily statistics of the last N days, newest date first.

    Rate limit: 100 requests per minute
    """
    return await statistic_crud.get_recent(db, from_date=date.today() - timedelta(days=days))


@router.get("/statistics/national-average", response_model=NationalAverageResponse)
@limiter.limit("100/minute")
async def get_national_average(
    request: Request,
    days: int = Query(7, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """
    Average of the cities' daily average temperatures over the last N days.

    Rate limit: 100 requests per minute
    """
    end_date = date.today()
    start_date = end_date - timedelta(days=days)
    average = await statistic_crud.get_national_average_temperature(
        db, start_date=start_date, end_date=end_date
    )
    return {"start_date": start_date, "end_date": end_date, "avg_temperature": average}


@router.get("/statistics/abnormal-ranking", response_model=List[DailyStatisticResponse])
@limiter.limit("100/minute")
async def get_abnormal_ranking(
    request: Request,
    days: int = Query(7, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """
    Daily statistics with abnormal readings, most abnormal first.

    Rate limit: 100 requests per minute
    """
    end_date = date.today()
    return await statistic_crud.get_abnormal_ranking(
        db, start_date=end_date - timedelta(days=days), end_date=end_date
    )


@router.get("/statistics/low-collection", response_model=List[DailyStatisticResponse])
@limiter.limit("100/minute")
async def get_low_collection(
    request: Request,
    days: int = Query(7, ge=1, le=365),
    threshold: float = Query(80.0, ge=0, le=100, description="Collection rate in percent"),
    db: AsyncSession = Depends(get_db),
):
    """
    Daily statistics whose collection rate is below the threshold.

    Rate limit: 100 requests per minute
    """
    end_date = date.today()
    return await statistic_crud.get_low_collection_rate(
        db, start_date=end_date - timedelta(days=days), end_date=end_date, threshold=threshold
    )


@router.get("/statistics/{city_code}", response_model=List[DailyStatisticResponse])
@limiter.limit("100/minute")
async def get_city_trend(
    request: Request,
    city_code: str,
    start: Optional[date] = Query(None, description="Start date (YYYY-MM-DD), default 7 days ago"),
    end: Optional[date] = Query(None, description="End date (YYYY-MM-DD), default today"),
    db: AsyncSession = Depends(get_db),
):
    """
    One city's daily statistics between two dates, oldest first.

    Rate limit: 100 requests per minute
    """
    end_date = end or date.today()
    start_date = start or end_date - timedelta(days=7)
    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must not be after end"
        )
    return await statistic_crud.get_trend(
        db, city_code=city_code, start_date=start_date, end_date=end_date
    )


@router.get("/alerts", response_model=List[AlertResponse])
@limiter.limit("100/minute")
async def get_recent_alerts(
    request: Request,
    days: int = Query(7, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """
    Alerts issued in the last N days, newest first.

    Rate limit: 100 requests per minute
    """
    start_time, end_time = _window(days)
    return await alert_crud.get_between(db, start_time=start_time, end_time=end_time)


@router.get("/alerts/active", response_model=List[AlertResponse])
@limiter.limit("100/minute")
async def get_active_alerts(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Unresolved alerts, newest first.

    Rate limit: 100 requests per minute
    """
    return await alert_crud.get_active(db)


@router.get("/alerts/unsent", response_model=List[AlertResponse])
@limiter.limit("100/minute")
async def get_unsent_alerts(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Alerts whose notification has not succeeded yet, oldest first.

    Rate limit: 100 requests per minute
    """
    return await alert_crud.get_unsent(db)


@router.get("/alerts/by-type", response_model=List[AlertTypeCount])
@limiter.limit("100/minute")
async def get_alert_counts_by_type(
    request: Request,
    days: int = Query(7, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """
    Alert counts per type and level over the last N days.

    Rate limit: 100 requests per minute
    """
    start_time, end_time = _window(days)
    rows = await alert_crud.count_by_type_and_level(db, start_time=start_time, end_time=end_time)
    return [
        {"alert_type": alert_type, "alert_level": alert_level, "count": count}
        for alert_type, alert_level, count in rows
    ]


@router.get("/alerts/by-city", response_model=List[CityAlertCount])
@limiter.limit("100/minute")
async def get_alert_counts_by_city(
    request: Request,
    days: int = Query(7, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """
    Alert counts per city and type over the last N days, most frequent first.

    Rate limit: 100 requests per minute
    """
    start_time, end_time = _window(days)
    rows = await alert_crud.count_by_city(db, start_time=start_time, end_time=end_time)
    return [
        {"city_name": city_name, "alert_type": alert_type, "count": count}
        for city_name, alert_type, count in rows
    ]


@router.get("/alerts/summary", response_model=AlertSummary)
@limiter.limit("100/minute")
async def get_alert_summary(
    request: Request,
    days: int = Query(7, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """
    Alert total, sent count and send success rate over the last N days.

    Rate limit: 100 requests per minute
    """
    start_time, end_time = _window(days)
    total, sent = await alert_crud.get_send_success_rate(db, start_time=start_time, end_time=end_time)
    return _alert_summary(total, sent)


@router.post("/alerts/{alert_id}/resolve", response_model=AlertResponse)
@limiter.limit("30/minute")
async def resolve_alert(
    request: Request,
    alert_id: int,
    db: AsyncSession = Depends(get_db),
    operator: Optional[str] = Depends(require_operator),
):
    """
    Mark an alert resolved. Resolution is terminal.

    Rate limit: 30 requests per minute
    """
    alert = await alert_crud.get(db, alert_id)
    if not alert:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Alert {alert_id} not found"
        )
    try:
        alert.mark_as_resolved()
    except AlertStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    await db.flush()
    return alert
