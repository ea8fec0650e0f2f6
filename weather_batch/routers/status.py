"""
Status router.

This module contains the service status endpoint: provider configuration,
registered jobs and the latest execution of each.
"""

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from weather_batch.batch.jobs import JOB_ALIASES
from weather_batch.config import settings
from weather_batch.crud.job_execution import job_execution as job_execution_crud
from weather_batch.database import get_db

router = APIRouter(
    prefix="/status",
    tags=["status"],
)

limiter = Limiter(key_func=get_remote_address)


@router.get("", response_model=dict)
@limiter.limit("60/minute")
async def get_status(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Get service status.

    Rate limit: 60 requests per minute

    Returns:
        dict: Provider configuration, city count and last status per job
    """
    jobs = {}
    for alias, job_name in JOB_ALIASES.items():
        latest = await job_execution_crud.get_recent(db, job_name=job_name, limit=1)
        jobs[alias] = {
            "job_name": job_name,
            "last_status": latest[0].status.value if latest else None,
            "last_end_time": latest[0].end_time.isoformat() if latest and latest[0].end_time else None,
        }

    return {
        "status": "ok",
        "provider_configured": settings.is_api_key_configured,
        "cities": len(settings.CITY_CODES),
        "jobs": jobs,
    }
