# Database models package

from weather_batch.models.base import BaseModel
from weather_batch.models.observation import WeatherObservation
from weather_batch.models.daily_statistic import DailyStatistic
from weather_batch.models.alert import AlertLevel, AlertStateError, AlertType, WeatherAlert
from weather_batch.models.job_execution import BatchStatus, JobExecution, StepExecution

__all__ = [
    "BaseModel",
    "WeatherObservation",
    "DailyStatistic",
    "WeatherAlert",
    "AlertType",
    "AlertLevel",
    "AlertStateError",
    "JobExecution",
    "StepExecution",
    "BatchStatus",
]

# Configure all mappers after all models are imported
# This resolves bidirectional relationships defined with string references
from sqlalchemy.orm import configure_mappers
configure_mappers()
