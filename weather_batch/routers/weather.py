"""
Weather data router.

Read-only endpoints over collected observations: the city roster, recent
readings, latest reading per city, temperature ranking, abnormal readings
and today's totals.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from weather_batch.config import settings
from weather_batch.crud.observation import day_bounds, observation as observation_crud
from weather_batch.database import get_db
from weather_batch.schemas.weather import CityResponse, ObservationResponse, TodaySummaryResponse

router = APIRouter(
    prefix="/weather",
    tags=["Weather Data"],
    responses={
        404: {"description": "Not found"}
    },
)

limiter = Limiter(key_func=get_remote_address)


@router.get("/cities", response_model=List[CityResponse])
@limiter.limit("100/minute")
async def get_cities(request: Request):
    """
    Get the collected city roster with display names.

    Rate limit: 100 requests per minute
    """
    return [{"code": code, "name": settings.city_name(code)} for code in settings.CITY_CODES]


@router.get("/observations", response_model=List[ObservationResponse])
@limiter.limit("100/minute")
async def get_observations(
    request: Request,
    city_code: Optional[str] = Query(None, description="Filter by city code"),
    hours: int = Query(24, ge=1, le=168, description="Get observations from last N hours"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """
    Get observations from the last N hours, newest first.

    Rate limit: 100 requests per minute
    """
    now = datetime.now()
    since = now - timedelta(hours=hours)
    if city_code:
        observations = await observation_crud.get_for_city_between(
            db, city_code=city_code, start_time=since, end_time=now
        )
    else:
        observations = await observation_crud.get_recent(db, since=since)
    return observations[skip:skip + limit]


@router.get("/current", response_model=List[ObservationResponse])
@limiter.limit("100/minute")
async def get_current_weather(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Get the latest observation of every city.

    Rate limit: 100 requests per minute
    """
    return await observation_crud.get_latest_per_city(db)


@router.get("/current/{city_code}", response_model=ObservationResponse)
@limiter.limit("100/minute")
async def get_current_weather_for_city(
    request: Request,
    city_code: str,
    db: AsyncSession = Depends(get_db),
):
    """
    Get the latest observation of one city.

    Rate limit: 100 requests per minute
    """
    observation = await observation_crud.get_latest_for_city(db, city_code=city_code)
    if not observation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No observations for city '{city_code}'"
        )
    return observation


@router.get("/ranking", response_model=List[ObservationResponse])
@limiter.limit("100/minute")
async def get_temperature_ranking(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Get the latest observation of every city, hottest first.

    Rate limit: 100 requests per minute
    """
    return await observation_crud.get_latest_per_city(db, order_by_temperature=True)


@router.get("/abnormal", response_model=List[ObservationResponse])
@limiter.limit("100/minute")
async def get_abnormal_observations(
    request: Request,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """
    Get observations flagged abnormal, newest first.

    Rate limit: 100 requests per minute
    """
    return await observation_crud.get_abnormal(db, skip=skip, limit=limit)


@router.get("/today", response_model=TodaySummaryResponse)
@limiter.limit("100/minute")
async def get_today_summary(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Get today's record count, temperature extremes and abnormal count.

    Rate limit: 100 requests per minute
    """
    today = datetime.now().date()
    start_time, end_time = day_bounds(today)
    observations = await observation_crud.get_between(db, start_time=start_time, end_time=end_time)

    temperatures = [o.temperature for o in observations if o.temperature is not None]
    return {
        "date": today,
        "total_records": len(observations),
        "avg_temperature": round(sum(temperatures) / len(temperatures), 2) if temperatures else None,
        "max_temperature": max(temperatures) if temperatures else None,
        "min_temperature": min(temperatures) if temperatures else None,
        "abnormal_count": sum(1 for o in observations if o.is_abnormal),
    }
