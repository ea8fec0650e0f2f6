"""
Job definitions and registry.

Each factory builds a fresh Job (new reader state, new dedup memory) for one
launch. Collaborators (provider client, notifier, RNG, clock) default to the
production ones and can be replaced by callers and tests.
"""

import random
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Optional

from weather_batch.batch.alerts import (
    RecentObservationReader,
    WeatherAlertProcessor,
    WeatherAlertWriter,
)
from weather_batch.batch.collection import WeatherCollectionProcessor
from weather_batch.batch.runtime import (
    Job,
    JobFactory,
    JobParameters,
    ListItemReader,
    RepositoryItemWriter,
    Step,
)
from weather_batch.batch.statistics import DailyStatisticsProcessor
from weather_batch.config import Settings, settings as default_settings
from weather_batch.crud.observation import observation as observation_crud
from weather_batch.crud.statistics import daily_statistic as statistic_crud
from weather_batch.services.notifier import LoggingNotifier, NotificationHook
from weather_batch.services.weather_client import OpenWeatherClient

COLLECTION_JOB = "collectWeatherDataJob"
STATISTICS_JOB = "generateDailyWeatherStatisticsJob"
ALERTS_JOB = "generateWeatherAlertsJob"

COLLECTION_STEP = "weatherCollectionStep"
STATISTICS_STEP = "dailyStatisticsStep"
ALERTS_STEP = "weatherAlertStep"

COLLECTION_CHUNK_SIZE = 3
STATISTICS_CHUNK_SIZE = 3
ALERTS_CHUNK_SIZE = 10

# Short names used by the trigger endpoints and the CLI
JOB_ALIASES = {
    "collection": COLLECTION_JOB,
    "statistics": STATISTICS_JOB,
    "alerts": ALERTS_JOB,
}


class NoSuchJobError(KeyError):
    """No job is registered under the requested name."""


def resolve_target_date(parameters: JobParameters, clock: Callable[[], datetime] = datetime.now) -> date:
    """
    Statistics date from the `date` parameter (ISO YYYY-MM-DD), default today.

    Raises:
        ValueError: if the parameter is not an ISO date
    """
    value = parameters.get("date")
    if value is None or value == "":
        return clock().date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def build_collection_job(
    parameters: JobParameters,
    *,
    client: Optional[OpenWeatherClient] = None,
    clock: Callable[[], datetime] = datetime.now,
    config: Settings = default_settings,
) -> Job:
    processor = WeatherCollectionProcessor(
        client=client or OpenWeatherClient(
            api_key=config.WEATHER_API_KEY,
            base_url=config.WEATHER_API_BASE_URL,
            lang=config.WEATHER_API_LANG,
            timeout=config.WEATHER_API_TIMEOUT,
        ),
        abnormal_threshold=config.ABNORMAL_TEMP_CHANGE_THRESHOLD,
        city_name=config.city_name,
        clock=clock,
    )
    step = Step(
        name=COLLECTION_STEP,
        reader=ListItemReader(config.CITY_CODES),
        processor=processor,
        writer=RepositoryItemWriter(observation_crud, "weather observations"),
        chunk_size=COLLECTION_CHUNK_SIZE,
    )
    return Job(name=COLLECTION_JOB, steps=[step])


def build_statistics_job(
    parameters: JobParameters,
    *,
    clock: Callable[[], datetime] = datetime.now,
    config: Settings = default_settings,
) -> Job:
    processor = DailyStatisticsProcessor(
        target_date=resolve_target_date(parameters, clock),
        expected_records=config.EXPECTED_DAILY_RECORDS,
        city_name=config.city_name,
        clock=clock,
    )
    step = Step(
        name=STATISTICS_STEP,
        reader=ListItemReader(config.CITY_CODES),
        processor=processor,
        writer=RepositoryItemWriter(statistic_crud, "daily statistics"),
        chunk_size=STATISTICS_CHUNK_SIZE,
    )
    return Job(name=STATISTICS_JOB, steps=[step])


def build_alerts_job(
    parameters: JobParameters,
    *,
    notifier: Optional[NotificationHook] = None,
    rng: Optional[random.Random] = None,
    clock: Callable[[], datetime] = datetime.now,
    config: Settings = default_settings,
) -> Job:
    step = Step(
        name=ALERTS_STEP,
        reader=RecentObservationReader(
            lookback=timedelta(hours=config.ALERT_LOOKBACK_HOURS), clock=clock
        ),
        processor=WeatherAlertProcessor(
            thresholds=config.alert_thresholds,
            dedup_window=config.ALERT_DEDUP_WINDOW,
            rng=rng,
            clock=clock,
        ),
        writer=WeatherAlertWriter(notifier or LoggingNotifier(), clock=clock),
        chunk_size=ALERTS_CHUNK_SIZE,
    )
    return Job(name=ALERTS_JOB, steps=[step])


JOB_FACTORIES: Dict[str, JobFactory] = {
    COLLECTION_JOB: build_collection_job,
    STATISTICS_JOB: build_statistics_job,
    ALERTS_JOB: build_alerts_job,
}


def resolve_job_name(name: str) -> str:
    """Map a short alias or a full job name to the registered job name."""
    job_name = JOB_ALIASES.get(name, name)
    if job_name not in JOB_FACTORIES:
        raise NoSuchJobError(name)
    return job_name


def create_job(name: str, parameters: JobParameters) -> Job:
    """
    Build the job registered under `name` (alias or full name).

    Raises:
        NoSuchJobError: unknown job
        ValueError: invalid job parameters
    """
    return JOB_FACTORIES[resolve_job_name(name)](parameters)
