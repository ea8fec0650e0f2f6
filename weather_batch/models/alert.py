"""
Weather alert database model.

This module contains the WeatherAlert model and its type/level enumerations.
An alert is bound to the observation that triggered it. It is created by the
alerts job, marked sent once the notification hook succeeds, and may be
resolved once; resolution is terminal.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, ForeignKey, Index, Integer, String

from weather_batch.models.base import BaseModel


class AlertType(str, enum.Enum):
    """Alert categories. The alerts job produces HEAT_WAVE, COLD_WAVE, HEAVY_RAIN and ABNORMAL_WEATHER."""

    HEAT_WAVE = "HEAT_WAVE"
    COLD_WAVE = "COLD_WAVE"
    HEAVY_RAIN = "HEAVY_RAIN"
    HEAVY_SNOW = "HEAVY_SNOW"
    STRONG_WIND = "STRONG_WIND"
    ABNORMAL_WEATHER = "ABNORMAL_WEATHER"

    @property
    def korean_name(self) -> str:
        return _ALERT_TYPE_NAMES[self]


class AlertLevel(str, enum.Enum):
    """Alert severity, lowest first."""

    NOTICE = "NOTICE"
    ADVISORY = "ADVISORY"
    WARNING = "WARNING"
    EMERGENCY = "EMERGENCY"

    @property
    def korean_name(self) -> str:
        return _ALERT_LEVEL_NAMES[self]


_ALERT_TYPE_NAMES = {
    AlertType.HEAT_WAVE: "폭염",
    AlertType.COLD_WAVE: "한파",
    AlertType.HEAVY_RAIN: "호우",
    AlertType.HEAVY_SNOW: "대설",
    AlertType.STRONG_WIND: "강풍",
    AlertType.ABNORMAL_WEATHER: "이상기후",
}

_ALERT_LEVEL_NAMES = {
    AlertLevel.NOTICE: "주의",
    AlertLevel.ADVISORY: "주의보",
    AlertLevel.WARNING: "경보",
    AlertLevel.EMERGENCY: "긴급",
}


def _alert_name(alert_type: AlertType, alert_level: AlertLevel) -> str:
    return f"{alert_type.korean_name} {alert_level.korean_name}"


class AlertStateError(Exception):
    """Raised when an alert transition is not allowed (e.g. resolving twice)."""


class WeatherAlert(BaseModel):
    """
    Operational weather warning for one city.

    Enum columns store the symbolic name. At most one unresolved alert of a
    given (city_code, alert_type) is issued per dedup window.
    """

    __tablename__ = "weather_alerts"

    city_code = Column(String(50), nullable=False, index=True)
    city_name = Column(String(100), nullable=False)
    alert_type = Column(Enum(AlertType, native_enum=False, length=30), nullable=False)
    alert_level = Column(Enum(AlertLevel, native_enum=False, length=30), nullable=False)
    alert_title = Column(String(200), nullable=False)
    alert_message = Column(String(1000), nullable=True)
    trigger_value = Column(Float, nullable=True, comment="Measured value that crossed the threshold")
    threshold_value = Column(Float, nullable=True)
    observation_id = Column(
        Integer,
        ForeignKey("weather_observations.id", ondelete="SET NULL"),
        nullable=True,
        comment="Triggering observation",
    )
    alert_time = Column(DateTime, nullable=False, default=datetime.now, index=True)

    is_sent = Column(Boolean, nullable=False, default=False)
    sent_time = Column(DateTime, nullable=True)
    is_resolved = Column(Boolean, nullable=False, default=False)
    resolved_time = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_alert_city_type_resolved", "city_code", "alert_type", "is_resolved"),
    )

    def mark_as_sent(self, when: Optional[datetime] = None) -> None:
        self.is_sent = True
        self.sent_time = when or datetime.now()

    def mark_as_resolved(self, when: Optional[datetime] = None) -> None:
        """Resolve the alert. Resolution is terminal."""
        if self.is_resolved:
            raise AlertStateError(f"Alert {self.id} is already resolved")
        self.is_resolved = True
        self.resolved_time = when or datetime.now()

    # Factories, one per rule

    @classmethod
    def heat_wave(cls, city_code: str, city_name: str, temperature: float,
                  threshold: float, alert_time: datetime) -> "WeatherAlert":
        alert_name = _alert_name(AlertType.HEAT_WAVE, AlertLevel.WARNING)
        return cls(
            city_code=city_code,
            city_name=city_name,
            alert_type=AlertType.HEAT_WAVE,
            alert_level=AlertLevel.WARNING,
            trigger_value=temperature,
            threshold_value=threshold,
            alert_title=f"{city_name} {alert_name}",
            alert_message=f"{city_name} 지역에 {alert_name}가 발령되었습니다. 현재 기온: {temperature:.1f}°C",
            alert_time=alert_time,
            is_sent=False,
            is_resolved=False,
        )

    @classmethod
    def cold_wave(cls, city_code: str, city_name: str, temperature: float,
                  threshold: float, alert_time: datetime) -> "WeatherAlert":
        alert_name = _alert_name(AlertType.COLD_WAVE, AlertLevel.ADVISORY)
        return cls(
            city_code=city_code,
            city_name=city_name,
            alert_type=AlertType.COLD_WAVE,
            alert_level=AlertLevel.ADVISORY,
            trigger_value=temperature,
            threshold_value=threshold,
            alert_title=f"{city_name} {alert_name}",
            alert_message=f"{city_name} 지역에 {alert_name}가 발령되었습니다. 현재 기온: {temperature:.1f}°C",
            alert_time=alert_time,
            is_sent=False,
            is_resolved=False,
        )

    @classmethod
    def heavy_rain(cls, city_code: str, city_name: str, rainfall: float,
                   threshold: float, alert_time: datetime) -> "WeatherAlert":
        alert_name = _alert_name(AlertType.HEAVY_RAIN, AlertLevel.WARNING)
        return cls(
            city_code=city_code,
            city_name=city_name,
            alert_type=AlertType.HEAVY_RAIN,
            alert_level=AlertLevel.WARNING,
            trigger_value=rainfall,
            threshold_value=threshold,
            alert_title=f"{city_name} {alert_name}",
            alert_message=f"{city_name} 지역에 {alert_name}가 발령되었습니다. 시간당 강수량: {rainfall:.1f}mm",
            alert_time=alert_time,
            is_sent=False,
            is_resolved=False,
        )

    @classmethod
    def abnormal_weather(cls, city_code: str, city_name: str, temperature_change: float,
                         threshold: float, alert_time: datetime) -> "WeatherAlert":
        return cls(
            city_code=city_code,
            city_name=city_name,
            alert_type=AlertType.ABNORMAL_WEATHER,
            alert_level=AlertLevel.NOTICE,
            trigger_value=abs(temperature_change),
            threshold_value=threshold,
            alert_title=f"{city_name} 이상 기후 감지",
            alert_message=(
                f"{city_name} 지역에서 급격한 기온 변화가 감지되었습니다. "
                f"전날 대비: {temperature_change:+.1f}°C"
            ),
            alert_time=alert_time,
            is_sent=False,
            is_resolved=False,
        )

    def __repr__(self):
        return (
            f"<WeatherAlert(id={self.id}, city_code={self.city_code}, "
            f"alert_type={self.alert_type}, alert_time={self.alert_time})>"
        )
