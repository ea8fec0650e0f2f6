"""
Tests for application settings.
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from weather_batch.config import DEFAULT_CITY_CODES, AlertThresholds, Settings


def test_defaults():
    config = Settings(WEATHER_API_KEY=None, OPERATOR_API_KEY=None)

    assert config.CITY_CODES == DEFAULT_CITY_CODES
    assert config.alert_thresholds == AlertThresholds(35.0, -10.0, 50.0, 20.0)
    assert config.ALERT_DEDUP_WINDOW == timedelta(hours=1)
    assert config.EXPECTED_DAILY_RECORDS == 24
    assert (config.LOG_MAX_BYTES, config.LOG_BACKUP_COUNT) == (5 * 1024 * 1024, 7)
    assert config.is_api_key_configured is False


@pytest.mark.parametrize("key, configured", [
    ("real-key", True),
    ("   ", False),
    ("demo_key", False),
    ("", False),
])
def test_api_key_configured(key, configured):
    assert Settings(WEATHER_API_KEY=key).is_api_key_configured is configured


def test_city_name_falls_back_to_code():
    config = Settings(CITY_NAMES={"Seoul": "서울"})

    assert config.city_name("Seoul") == "서울"
    assert config.city_name("Jeju") == "Jeju"


def test_thresholds_follow_overrides():
    config = Settings(HEAT_WAVE_THRESHOLD=33.0, ABNORMAL_TEMP_CHANGE_THRESHOLD=15.0)

    assert config.alert_thresholds.heat_wave == 33.0
    assert config.alert_thresholds.abnormal_temp_change == 15.0


def test_cors_origins_from_comma_separated_string():
    config = Settings(BACKEND_CORS_ORIGINS="http://a.test, http://b.test")

    assert config.BACKEND_CORS_ORIGINS == ["http://a.test", "http://b.test"]


def test_explicit_database_url_wins():
    config = Settings(SQLALCHEMY_DATABASE_URI="sqlite+aiosqlite:///other.db")

    assert config.SQLALCHEMY_DATABASE_URI == "sqlite+aiosqlite:///other.db"


def test_settings_are_immutable():
    config = Settings()

    with pytest.raises(ValidationError):
        config.HEAT_WAVE_THRESHOLD = 40.0
