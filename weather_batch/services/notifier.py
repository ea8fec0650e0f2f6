"""
Alert notification hook.

Notification is a side effect run after an alert has been committed. A hook
that raises leaves the alert unsent; `dispatch_pending_alerts` retries every
unsent alert later.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from weather_batch.crud.alert import alert as alert_crud
from weather_batch.models.alert import WeatherAlert
from weather_batch.utils.logging_config import get_logger

logger = get_logger(__name__)


class NotificationHook(ABC):
    """Delivers one alert. Raising marks the delivery as failed."""

    @abstractmethod
    async def notify(self, alert: WeatherAlert) -> None:
        ...


class LoggingNotifier(NotificationHook):
    """Delivers alerts to the application log."""

    async def notify(self, alert: WeatherAlert) -> None:
        logger.info(f"ALERT NOTIFICATION: {alert.alert_title} - {alert.alert_message}")


async def dispatch_pending_alerts(
    db: AsyncSession,
    notifier: NotificationHook,
    clock: Callable[[], datetime] = datetime.now,
) -> Tuple[int, int]:
    """
    Send every unsent alert, oldest first.

    Each successful delivery is committed on its own, so a later failure
    does not undo earlier sends.

    Args:
        db: Database session
        notifier: Notification hook
        clock: Returns the send instant

    Returns:
        Tuple of (sent, failed)
    """
    sent = failed = 0
    for pending in await alert_crud.get_unsent(db):
        try:
            await notifier.notify(pending)
        except Exception as e:
            failed += 1
            logger.error(f"Failed to send alert {pending.id} ({pending.alert_title}): {e}")
            continue
        pending.mark_as_sent(clock())
        await db.commit()
        sent += 1

    logger.info(f"Alert dispatch finished: {sent} sent, {failed} failed")
    return sent, failed
