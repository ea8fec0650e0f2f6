"""
Weather alerts job.

Reads the observations of the lookback window (newest first) and applies
four rules to each:

| Rule             | Condition                          | Level    |
|------------------|------------------------------------|----------|
| HEAT_WAVE        | temperature >= heat-wave threshold | WARNING  |
| COLD_WAVE        | temperature <= cold-wave threshold | ADVISORY |
| HEAVY_RAIN       | weather class Rain or Thunderstorm | WARNING  |
| ABNORMAL_WEATHER | |temperature change| >= threshold  | NOTICE   |

A candidate is dropped when an unresolved alert of the same city and type
was issued within the dedup window, either in the database or earlier in
the same run. Saved alerts are passed to the notification hook once their
chunk has committed.
"""

import random
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from weather_batch.batch.runtime import ItemProcessor, ItemReader, ItemWriter
from weather_batch.config import AlertThresholds
from weather_batch.crud.alert import alert as alert_crud
from weather_batch.crud.observation import observation as observation_crud
from weather_batch.models.alert import AlertType, WeatherAlert
from weather_batch.models.observation import WeatherObservation
from weather_batch.services.notifier import NotificationHook
from weather_batch.utils.logging_config import get_logger

logger = get_logger(__name__)

RAIN_WEATHER = ("Rain", "Thunderstorm")


def simulate_hourly_rainfall(weather_main: Optional[str], rng: random.Random) -> float:
    """
    Simulated hourly rainfall in mm for a weather class.

    The provider's current-weather rain volume is not used yet:
    Thunderstorm gives 60-100 mm, Rain 50-70 mm, anything else 0.
    """
    if weather_main == "Thunderstorm":
        return 60.0 + rng.random() * 40.0
    if weather_main == "Rain":
        return 50.0 + rng.random() * 20.0
    return 0.0


def evaluate_rules(
    observation: WeatherObservation,
    thresholds: AlertThresholds,
    rng: random.Random,
    alert_time: datetime,
) -> List[WeatherAlert]:
    """
    Build every alert the observation triggers, before deduplication.

    Args:
        observation: Observation with a temperature
        thresholds: Alert thresholds
        rng: Random source for the rainfall simulation
        alert_time: Issue time of the alerts

    Returns:
        Candidate alerts, possibly empty
    """
    code, name = observation.city_code, observation.city_name
    temperature = observation.temperature
    candidates = []

    if temperature >= thresholds.heat_wave:
        candidates.append(
            WeatherAlert.heat_wave(code, name, temperature, thresholds.heat_wave, alert_time)
        )
    if temperature <= thresholds.cold_wave:
        candidates.append(
            WeatherAlert.cold_wave(code, name, temperature, thresholds.cold_wave, alert_time)
        )
    if observation.weather_main in RAIN_WEATHER:
        rainfall = round(simulate_hourly_rainfall(observation.weather_main, rng), 1)
        candidates.append(
            WeatherAlert.heavy_rain(code, name, rainfall, thresholds.heavy_rain, alert_time)
        )
    change = observation.temperature_change
    if change is not None and abs(change) >= thresholds.abnormal_temp_change:
        candidates.append(
            WeatherAlert.abnormal_weather(
                code, name, change, thresholds.abnormal_temp_change, alert_time
            )
        )

    for candidate in candidates:
        candidate.observation_id = observation.id
    return candidates


class RecentObservationReader(ItemReader[WeatherObservation]):
    """Reads observations collected within the last `lookback`, newest first."""

    def __init__(self, lookback: timedelta, clock: Callable[[], datetime] = datetime.now):
        self.lookback = lookback
        self.clock = clock
        self._observations: Optional[List[WeatherObservation]] = None
        self._index = 0

    async def read(self, session: AsyncSession) -> Optional[WeatherObservation]:
        if self._observations is None:
            self._observations = await observation_crud.get_recent(
                session, since=self.clock() - self.lookback
            )
            logger.info(f"Found {len(self._observations)} observations to check for alerts")
        if self._index < len(self._observations):
            observation = self._observations[self._index]
            self._index += 1
            return observation
        return None


class WeatherAlertProcessor(ItemProcessor[WeatherObservation, List[WeatherAlert]]):
    """
    Applies the alert rules to one observation and drops duplicates.

    Args:
        thresholds: Alert thresholds
        dedup_window: How long an unresolved alert suppresses a new one
        rng: Random source for the rainfall simulation
        clock: Returns the alert time
    """

    def __init__(
        self,
        thresholds: AlertThresholds,
        dedup_window: timedelta,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.thresholds = thresholds
        self.dedup_window = dedup_window
        self.rng = rng or random.Random()
        self.clock = clock
        # alerts issued by this run but not yet committed
        self._issued: Dict[Tuple[str, AlertType], datetime] = {}

    async def _is_duplicate(self, session: AsyncSession, candidate: WeatherAlert, now: datetime) -> bool:
        since = now - self.dedup_window
        issued = self._issued.get((candidate.city_code, candidate.alert_type))
        if issued is not None and issued > since:
            return True
        existing = await alert_crud.get_recent_similar(
            session,
            city_code=candidate.city_code,
            alert_type=candidate.alert_type,
            since=since,
        )
        return bool(existing)

    async def process(
        self, session: AsyncSession, observation: WeatherObservation
    ) -> Optional[List[WeatherAlert]]:
        if observation.temperature is None:
            logger.debug(f"Observation {observation.id} has no temperature; skipping")
            return None

        now = self.clock()
        alerts = []
        for candidate in evaluate_rules(observation, self.thresholds, self.rng, now):
            if await self._is_duplicate(session, candidate, now):
                logger.debug(
                    f"Suppressed duplicate {candidate.alert_type.value} alert for {candidate.city_code}"
                )
                continue
            self._issued[(candidate.city_code, candidate.alert_type)] = now
            alerts.append(candidate)
            logger.info(f"Alert generated: {candidate.alert_title}")

        return alerts or None


class WeatherAlertWriter(ItemWriter[List[WeatherAlert]]):
    """
    Saves alerts in the chunk transaction, then notifies per alert.

    A successful notification marks the alert sent in its own commit; a
    failed one is logged and the alert stays unsent.
    """

    def __init__(self, notifier: NotificationHook, clock: Callable[[], datetime] = datetime.now):
        self.notifier = notifier
        self.clock = clock

    async def write(self, session: AsyncSession, items: List[List[WeatherAlert]]) -> None:
        alerts = [alert for group in items for alert in group]
        await alert_crud.save_all(session, alerts)
        logger.info(f"Saved {len(alerts)} weather alerts")

    async def after_commit(self, session: AsyncSession, items: List[List[WeatherAlert]]) -> None:
        for alert in (alert for group in items for alert in group):
            try:
                await self.notifier.notify(alert)
            except Exception as e:
                logger.error(f"Notification failed for alert {alert.id} ({alert.alert_title}): {e}")
                continue
            async with session.begin():
                alert.mark_as_sent(self.clock())
