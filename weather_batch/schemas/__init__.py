# Pydantic schemas package

from weather_batch.schemas.base import BaseSchema, TimestampSchema, IDSchema
from weather_batch.schemas.batch import (
    JobLaunchRequest, JobExecutionResponse, StepExecutionResponse,
    DispatchResponse, SampleDataResponse
)
from weather_batch.schemas.weather import (
    CityResponse, ObservationResponse, TodaySummaryResponse,
    DailyStatisticResponse, NationalAverageResponse,
    AlertResponse, AlertTypeCount, CityAlertCount, AlertSummary,
    ResultsOverviewResponse
)

__all__ = [
    # Base schemas
    "BaseSchema", "TimestampSchema", "IDSchema",

    # Batch schemas
    "JobLaunchRequest", "JobExecutionResponse", "StepExecutionResponse",
    "DispatchResponse", "SampleDataResponse",

    # Weather schemas
    "CityResponse", "ObservationResponse", "TodaySummaryResponse",
    "DailyStatisticResponse", "NationalAverageResponse",
    "AlertResponse", "AlertTypeCount", "CityAlertCount", "AlertSummary",
    "ResultsOverviewResponse",
]
