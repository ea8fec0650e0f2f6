"""
Application configuration using Pydantic settings.

This module contains all configuration settings for the application,
loaded from environment variables with sensible defaults. Settings are
loaded once at startup and are immutable afterwards.
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional, Union

from pydantic import ConfigDict, field_validator, ValidationInfo
from pydantic_settings import BaseSettings


# Fixed roster of collected cities, in reader order
DEFAULT_CITY_CODES = [
    "Seoul", "Busan", "Incheon", "Daegu", "Daejeon", "Gwangju", "Ulsan", "Suwon",
]

DEFAULT_CITY_NAMES = {
    "Seoul": "서울",
    "Busan": "부산",
    "Incheon": "인천",
    "Daegu": "대구",
    "Daejeon": "대전",
    "Gwangju": "광주",
    "Ulsan": "울산",
    "Suwon": "수원",
}


@dataclass(frozen=True)
class AlertThresholds:
    """Thresholds used by the abnormal-weather check and the alert rules."""

    heat_wave: float = 35.0
    cold_wave: float = -10.0
    heavy_rain: float = 50.0
    abnormal_temp_change: float = 20.0


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden with environment variables.
    """

    # API Configuration
    API_V1_STR: str = "/api/v1"
    SERVER_NAME: str = "Weather Batch Service"
    DEBUG: bool = False

    # CORS Configuration
    BACKEND_CORS_ORIGINS: Union[str, List[str]] = "http://localhost:3000,http://localhost:8080"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(
        cls, v: Union[str, List[str]]
    ) -> List[str]:
        """
        Parse CORS origins from environment variable.

        Supports:
        - Comma-separated string: "http://localhost,http://example.com"
        - Already parsed list: ["http://localhost"]
        - Empty string: returns empty list
        """
        if v is None or v == "":
            return []
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list):
            return v
        raise ValueError(f"Invalid CORS origins format: {v}")

    # Database Configuration
    DATABASE_NAME: str = "weather_batch.db"
    SQLALCHEMY_DATABASE_URI: Optional[str] = None

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> str:
        """Assemble database connection string, preferring an explicit URL."""
        if isinstance(v, str) and v:
            return v

        # DATABASE_URL (Render/Railway/Heroku style)
        database_url = os.getenv("DATABASE_URL")
        if database_url:
            if database_url.startswith("postgres://"):
                database_url = database_url.replace("postgres://", "postgresql+asyncpg://", 1)
            elif database_url.startswith("postgresql://"):
                database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return database_url

        db_name = info.data.get("DATABASE_NAME") or "weather_batch.db"
        return f"sqlite+aiosqlite:///{db_name}"

    # Weather provider (OpenWeatherMap current weather)
    WEATHER_API_KEY: Optional[str] = None
    WEATHER_API_BASE_URL: str = "https://api.openweathermap.org/data/2.5/weather"
    WEATHER_API_LANG: str = "kr"
    WEATHER_API_TIMEOUT: float = 10.0

    # City roster
    CITY_CODES: List[str] = DEFAULT_CITY_CODES
    CITY_NAMES: Dict[str, str] = DEFAULT_CITY_NAMES

    # Alert thresholds
    HEAT_WAVE_THRESHOLD: float = 35.0
    COLD_WAVE_THRESHOLD: float = -10.0
    HEAVY_RAIN_THRESHOLD: float = 50.0
    ABNORMAL_TEMP_CHANGE_THRESHOLD: float = 20.0
    ALERT_DEDUP_WINDOW: timedelta = timedelta(hours=1)
    ALERT_LOOKBACK_HOURS: int = 24

    # Statistics
    EXPECTED_DAILY_RECORDS: int = 24

    # Operator surface
    OPERATOR_API_KEY: Optional[str] = None

    # Rate Limiting
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW: int = 60  # seconds

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 7

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True,
        frozen=True,
        extra="ignore",
    )

    @property
    def is_api_key_configured(self) -> bool:
        """Whether a usable provider API key is present."""
        return bool(self.WEATHER_API_KEY and self.WEATHER_API_KEY.strip()
                    and self.WEATHER_API_KEY != "demo_key")

    @property
    def alert_thresholds(self) -> AlertThresholds:
        return AlertThresholds(
            heat_wave=self.HEAT_WAVE_THRESHOLD,
            cold_wave=self.COLD_WAVE_THRESHOLD,
            heavy_rain=self.HEAVY_RAIN_THRESHOLD,
            abnormal_temp_change=self.ABNORMAL_TEMP_CHANGE_THRESHOLD,
        )

    def city_name(self, city_code: str) -> str:
        """Resolve a display name for a city code, defaulting to the code."""
        return self.CITY_NAMES.get(city_code, city_code)


# Create global settings instance
settings = Settings()
