"""
Batch operation schemas.

Launch requests and execution records for the trigger and execution
listing endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from weather_batch.models.job_execution import BatchStatus
from weather_batch.schemas.base import BaseSchema, IDSchema


class JobLaunchRequest(BaseSchema):
    """Optional parameters for a job launch; `time` is added when missing."""
    parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Job parameters, e.g. {\"date\": \"2024-05-01\"} for statistics",
    )


class StepExecutionResponse(IDSchema):
    step_name: str
    status: BatchStatus
    read_count: int
    write_count: int
    filter_count: int
    commit_count: int
    rollback_count: int
    exit_message: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class JobExecutionResponse(IDSchema):
    job_name: str
    job_key: str
    parameters: Dict[str, Any]
    status: BatchStatus
    exit_message: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    step_executions: List[StepExecutionResponse] = []


class DispatchResponse(BaseSchema):
    sent: int
    failed: int


class SampleDataResponse(BaseSchema):
    message: str
    count: int
