"""
Weather data schemas.

Response schemas for observations, daily statistics and alerts, plus the
aggregate shapes returned by the listing endpoints.
"""

from datetime import datetime
from datetime import date as DateType
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field

from weather_batch.models.alert import AlertLevel, AlertType
from weather_batch.schemas.base import BaseSchema, IDSchema, TimestampSchema


class CityResponse(BaseSchema):
    """Roster city."""
    code: str
    name: str


class ObservationResponse(IDSchema):
    """Stored weather observation."""
    city_code: str
    city_name: str
    temperature: Optional[float] = Field(None, description="Air temperature in °C")
    feels_like: Optional[float] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    humidity: Optional[int] = Field(None, ge=0, le=100, description="Relative humidity in %")
    pressure: Optional[int] = Field(None, description="Pressure in hPa")
    weather_main: Optional[str] = None
    weather_description: Optional[str] = None
    cloudiness: Optional[int] = None
    wind_speed: Optional[float] = None
    wind_direction: Optional[int] = None
    rainfall: Optional[float] = None
    snowfall: Optional[float] = None
    visibility: Optional[int] = None
    collected_at: datetime
    weather_time: Optional[datetime] = None
    temperature_change: Optional[float] = Field(
        None, description="°C versus the previous day's latest reading"
    )
    is_abnormal: bool


class TodaySummaryResponse(BaseSchema):
    """Today's observation totals across all cities."""
    date: DateType
    total_records: int
    avg_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    min_temperature: Optional[float] = None
    abnormal_count: int


class DailyStatisticResponse(IDSchema, TimestampSchema):
    """Per-city, per-date summary."""
    statistics_date: DateType
    city_code: str
    city_name: str
    avg_temperature: Optional[Decimal] = None
    max_temperature: Optional[Decimal] = None
    min_temperature: Optional[Decimal] = None
    temperature_range: Optional[Decimal] = None
    avg_humidity: Optional[int] = None
    avg_pressure: Optional[int] = None
    dominant_weather: Optional[str] = None
    clear_hours: int
    cloudy_hours: int
    rainy_hours: int
    abnormal_weather_count: int
    max_temperature_change: Optional[Decimal] = None
    total_records: int
    data_collection_rate: Optional[Decimal] = Field(None, description="Percent of expected readings")


class NationalAverageResponse(BaseSchema):
    start_date: DateType
    end_date: DateType
    avg_temperature: Optional[float] = None


class AlertResponse(IDSchema):
    """Weather alert."""
    city_code: str
    city_name: str
    alert_type: AlertType
    alert_level: AlertLevel
    alert_title: str
    alert_message: Optional[str] = None
    trigger_value: Optional[float] = None
    threshold_value: Optional[float] = None
    observation_id: Optional[int] = None
    alert_time: datetime
    is_sent: bool
    sent_time: Optional[datetime] = None
    is_resolved: bool
    resolved_time: Optional[datetime] = None
    created_at: datetime


class AlertTypeCount(BaseSchema):
    alert_type: AlertType
    alert_level: AlertLevel
    count: int


class CityAlertCount(BaseSchema):
    city_name: str
    alert_type: AlertType
    count: int


class AlertSummary(BaseSchema):
    """Alert totals over a window."""
    total: int
    sent: int
    send_success_rate: Optional[float] = Field(None, description="Percent of alerts sent")


class ResultsOverviewResponse(BaseSchema):
    """Dashboard totals."""
    observation_count: int
    statistics_count: int
    alert_count: int
    today_statistics: List[DailyStatisticResponse]
    active_alerts: List[AlertResponse]
    unsent_alerts: List[AlertResponse]
    alert_summary: AlertSummary
    counts_by_type: Dict[str, int]
