"""
Weather observation database model.

This module contains the WeatherObservation model for storing current-weather
readings collected from the external provider, one row per city per run.

Rows are written by the collection job and never mutated afterwards; the
statistics and alert jobs only read them.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String

from weather_batch.models.base import BaseModel


class WeatherObservation(BaseModel):
    """
    A single weather reading for one city at one instant.

    `temperature_change` is the difference to the most recent reading of the
    previous calendar day; `is_abnormal` is set iff its magnitude reaches the
    abnormal temperature-change threshold.
    """

    __tablename__ = "weather_observations"

    city_code = Column(String(50), nullable=False, index=True, comment="ASCII city code (join key)")
    city_name = Column(String(100), nullable=False, comment="City display name")

    # Temperature block
    temperature = Column(Float, nullable=True, comment="Air temperature in °C")
    feels_like = Column(Float, nullable=True, comment="Apparent temperature in °C")
    temp_min = Column(Float, nullable=True, comment="Minimum temperature in °C")
    temp_max = Column(Float, nullable=True, comment="Maximum temperature in °C")
    humidity = Column(Integer, nullable=True, comment="Relative humidity in % (0-100)")
    pressure = Column(Integer, nullable=True, comment="Pressure in hPa")

    # Conditions
    weather_main = Column(String(50), nullable=True, comment="Weather class: Clear, Clouds, Rain, ...")
    weather_description = Column(String(200), nullable=True)
    cloudiness = Column(Integer, nullable=True, comment="Cloudiness in %")
    wind_speed = Column(Float, nullable=True, comment="Wind speed in m/s")
    wind_direction = Column(Integer, nullable=True, comment="Wind direction in degrees")
    rainfall = Column(Float, nullable=True, comment="Rain volume for the last hour in mm")
    snowfall = Column(Float, nullable=True, comment="Snow volume for the last hour in mm")
    visibility = Column(Integer, nullable=True, comment="Visibility in metres")

    collected_at = Column(DateTime, nullable=False, index=True)
    weather_time = Column(DateTime, nullable=True)

    # Abnormal weather detection
    temperature_change = Column(Float, nullable=True, comment="°C versus the previous day's latest reading")
    is_abnormal = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_observation_city_collected", "city_code", "collected_at"),
    )

    def __repr__(self):
        return (
            f"<WeatherObservation(id={self.id}, city_code={self.city_code}, "
            f"collected_at={self.collected_at})>"
        )
