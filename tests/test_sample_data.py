"""
Tests for the sample observation generator.
"""

import random
from collections import Counter
from datetime import timedelta

from conftest import NOW
from weather_batch.config import Settings
from weather_batch.crud.observation import observation as observation_crud
from weather_batch.services.sample_data import (
    SAMPLE_DAYS,
    build_extreme_observations,
    build_random_observations,
    clear_sample_data,
    generate_sample_data,
)


def test_random_observations_cover_previous_days_hourly():
    config = Settings(CITY_CODES=["Seoul", "Busan"])

    observations = build_random_observations(NOW, random.Random(1), config)

    assert len(observations) == SAMPLE_DAYS * 24 * 2
    per_day = Counter(o.collected_at.date() for o in observations)
    assert sorted(per_day) == [(NOW - timedelta(days=d)).date() for d in range(SAMPLE_DAYS, 0, -1)]
    assert set(per_day.values()) == {48}
    for o in observations:
        assert -5 <= o.temperature <= 30
        assert 30 <= o.humidity <= 90
        assert o.is_abnormal is (abs(o.temperature_change) >= 20.0)


def test_extreme_observations():
    extremes = {o.city_code: o for o in build_extreme_observations(NOW)}

    assert extremes["Seoul"].temperature == 37.5
    assert extremes["Daegu"].weather_main == "Snow"
    assert extremes["Busan"].weather_main == "Rain"
    assert extremes["Incheon"].temperature_change == -22.5
    assert extremes["Incheon"].is_abnormal is True
    assert all(NOW - timedelta(hours=2) <= o.collected_at < NOW for o in extremes.values())


async def test_generate_and_clear(db_session):
    config = Settings(CITY_CODES=["Seoul"])

    count = await generate_sample_data(db_session, random.Random(3), lambda: NOW, config)

    assert count == SAMPLE_DAYS * 24 + 4
    assert await observation_crud.count(db_session) == count
    assert await clear_sample_data(db_session) == count
    assert await observation_crud.count(db_session) == 0
