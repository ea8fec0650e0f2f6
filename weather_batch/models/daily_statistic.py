"""
Daily statistic database model.

This module contains the DailyStatistic model holding the per-city, per-date
summary derived from the day's weather observations. Rows are upserted by the
statistics job; `(statistics_date, city_code)` is unique.
"""

from decimal import Decimal

from sqlalchemy import Column, Date, Index, Integer, Numeric, String, UniqueConstraint

from weather_batch.models.base import BaseModel
from weather_batch.utils.statistics import collection_rate, quantize_half_up


class DailyStatistic(BaseModel):
    """
    Daily weather statistics for one city.

    Fields include:
    - Average, maximum, minimum temperature and the day's range
    - Mean humidity and pressure
    - Dominant weather class and per-class observation counts
    - Abnormal observation count and largest temperature swing
    - Collection completeness against the expected number of readings
    """

    __tablename__ = "daily_statistics"

    statistics_date = Column(Date, nullable=False, index=True)
    city_code = Column(String(50), nullable=False, index=True)
    city_name = Column(String(100), nullable=False)

    # Temperature statistics
    avg_temperature = Column(Numeric(5, 2), nullable=True)
    max_temperature = Column(Numeric(5, 2), nullable=True)
    min_temperature = Column(Numeric(5, 2), nullable=True)
    temperature_range = Column(Numeric(5, 2), nullable=True)

    avg_humidity = Column(Integer, nullable=True)
    avg_pressure = Column(Integer, nullable=True)

    # Weather condition buckets
    dominant_weather = Column(String(50), nullable=True)
    clear_hours = Column(Integer, nullable=False, default=0)
    cloudy_hours = Column(Integer, nullable=False, default=0)
    rainy_hours = Column(Integer, nullable=False, default=0)

    # Abnormal weather
    abnormal_weather_count = Column(Integer, nullable=False, default=0)
    max_temperature_change = Column(Numeric(5, 2), nullable=True)

    # Collection completeness
    total_records = Column(Integer, nullable=False, default=0)
    data_collection_rate = Column(Numeric(5, 2), nullable=True, comment="Percent of expected readings")

    __table_args__ = (
        UniqueConstraint("statistics_date", "city_code", name="uq_statistics_date_city"),
        Index("idx_statistics_city_date", "city_code", "statistics_date"),
    )

    def calculate_temperature_range(self) -> None:
        """Set the range to max - min when both are known."""
        if self.max_temperature is not None and self.min_temperature is not None:
            self.temperature_range = quantize_half_up(
                Decimal(self.max_temperature) - Decimal(self.min_temperature)
            )
        else:
            self.temperature_range = None

    def calculate_data_collection_rate(self, expected_records: int) -> None:
        """Set the collection rate as a percentage of the expected readings."""
        self.data_collection_rate = collection_rate(self.total_records or 0, expected_records)

    def __repr__(self):
        return (
            f"<DailyStatistic(id={self.id}, city_code={self.city_code}, "
            f"statistics_date={self.statistics_date})>"
        )
