"""
Batch router.

Operator endpoints that launch the collection, statistics and alerts jobs,
list their executions, re-send unsent alerts and manage sample data.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from weather_batch.batch.jobs import (
    ALERTS_JOB,
    COLLECTION_JOB,
    STATISTICS_JOB,
    NoSuchJobError,
    create_job,
    resolve_job_name,
)
from weather_batch.batch.runtime import (
    JobExecutionAlreadyRunningError,
    JobInstanceAlreadyCompleteError,
    JobLauncher,
    JobParameters,
    with_run_id,
)
from weather_batch.config import settings
from weather_batch.crud.job_execution import job_execution as job_execution_crud
from weather_batch.database import get_db
from weather_batch.dependencies.auth import require_operator
from weather_batch.dependencies.batch import get_job_launcher
from weather_batch.models.job_execution import JobExecution
from weather_batch.schemas.batch import (
    DispatchResponse,
    JobExecutionResponse,
    JobLaunchRequest,
    SampleDataResponse,
)
from weather_batch.services.notifier import LoggingNotifier, dispatch_pending_alerts
from weather_batch.services.sample_data import clear_sample_data, generate_sample_data
from weather_batch.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/batch",
    tags=["Batch Jobs"],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Not found"},
        409: {"description": "Job instance already complete or running"},
    },
)

limiter = Limiter(key_func=get_remote_address)


async def launch(launcher: JobLauncher, name: str, parameters: JobParameters) -> JobExecution:
    """
    Build and run a job, mapping launch errors to HTTP errors.

    Raises:
        HTTPException: 404 unknown job, 422 bad parameters, 503 provider not
            configured, 409 same parameters already complete or running
    """
    try:
        job_name = resolve_job_name(name)
    except NoSuchJobError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job '{name}' not found"
        )

    if job_name == COLLECTION_JOB and not settings.is_api_key_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Weather API key is not configured; set WEATHER_API_KEY to run collection"
        )

    params = with_run_id(parameters)
    try:
        job = create_job(job_name, params)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid parameters for {job_name}: {e}"
        )

    try:
        return await launcher.run(job, params)
    except (JobInstanceAlreadyCompleteError, JobExecutionAlreadyRunningError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/jobs/run-all", response_model=List[JobExecutionResponse])
@limiter.limit("10/minute")
async def run_all_jobs(
    request: Request,
    launch_request: Optional[JobLaunchRequest] = None,
    launcher: JobLauncher = Depends(get_job_launcher),
    operator: Optional[str] = Depends(require_operator),
):
    """
    Run the statistics job, then the alerts job.

    Collection is not included; it needs the provider and runs on its own.

    Rate limit: 10 requests per minute
    """
    parameters = launch_request.parameters if launch_request else {}
    executions = []
    for job_name in (STATISTICS_JOB, ALERTS_JOB):
        executions.append(await launch(launcher, job_name, parameters))
    return executions


@router.post("/jobs/{job}", response_model=JobExecutionResponse)
@limiter.limit("30/minute")
async def run_job(
    request: Request,
    job: str,
    launch_request: Optional[JobLaunchRequest] = None,
    launcher: JobLauncher = Depends(get_job_launcher),
    operator: Optional[str] = Depends(require_operator),
):
    """
    Launch one job and wait for it to finish.

    `job` is `collection`, `statistics`, `alerts` or a full job name. A
    `time` parameter (epoch millis) is added when missing, so repeated
    triggers are distinct runs. The response carries the final status; a
    FAILED job still answers 200 with the cause in `exit_message`.

    Rate limit: 30 requests per minute
    """
    parameters = launch_request.parameters if launch_request else {}
    execution = await launch(launcher, job, parameters)
    logger.info(f"Job {execution.job_name} finished via API with status {execution.status.value}")
    return execution


@router.get("/executions", response_model=List[JobExecutionResponse])
@limiter.limit("100/minute")
async def list_executions(
    request: Request,
    job: Optional[str] = Query(None, description="Job alias or full job name"),
    limit: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """
    List recent job executions, newest first.

    Rate limit: 100 requests per minute
    """
    job_name = None
    if job:
        try:
            job_name = resolve_job_name(job)
        except NoSuchJobError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Job '{job}' not found"
            )
    return await job_execution_crud.get_recent(db, job_name=job_name, limit=limit)


@router.get("/executions/{execution_id}", response_model=JobExecutionResponse)
@limiter.limit("100/minute")
async def get_execution(
    request: Request,
    execution_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Get one job execution with its step executions.

    Rate limit: 100 requests per minute
    """
    execution = await job_execution_crud.get(db, execution_id)
    if not execution:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Execution {execution_id} not found"
        )
    return execution


@router.post("/alerts/dispatch", response_model=DispatchResponse)
@limiter.limit("10/minute")
async def dispatch_alerts(
    request: Request,
    db: AsyncSession = Depends(get_db),
    operator: Optional[str] = Depends(require_operator),
):
    """
    Send every unsent alert through the notification hook, oldest first.

    Rate limit: 10 requests per minute
    """
    sent, failed = await dispatch_pending_alerts(db, LoggingNotifier())
    return {"sent": sent, "failed": failed}


@router.post("/sample-data", response_model=SampleDataResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def create_sample_data(
    request: Request,
    db: AsyncSession = Depends(get_db),
    operator: Optional[str] = Depends(require_operator),
):
    """
    Generate three days of hourly sample observations plus extreme readings.

    Rate limit: 5 requests per minute
    """
    count = await generate_sample_data(db)
    return {"message": "Sample weather data generated", "count": count}


@router.delete("/sample-data", response_model=SampleDataResponse)
@limiter.limit("5/minute")
async def delete_sample_data(
    request: Request,
    db: AsyncSession = Depends(get_db),
    operator: Optional[str] = Depends(require_operator),
):
    """
    Delete every stored observation.

    Rate limit: 5 requests per minute
    """
    count = await clear_sample_data(db)
    return {"message": "Weather data cleared", "count": count}
