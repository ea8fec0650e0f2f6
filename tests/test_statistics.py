"""
Tests for the daily statistics job and its math helpers.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from conftest import NOW, fixed_clock, make_observation
from weather_batch.batch.jobs import build_statistics_job, resolve_target_date
from weather_batch.config import Settings
from weather_batch.models.daily_statistic import DailyStatistic
from weather_batch.models.job_execution import BatchStatus
from weather_batch.utils.statistics import (
    collection_rate,
    dominant_weather,
    mean_half_up,
    summarize_observations,
    weather_counts,
)

TODAY = NOW.date()


def statistics_settings(cities=("Seoul",)):
    return Settings(CITY_CODES=list(cities), EXPECTED_DAILY_RECORDS=24)


async def all_statistics(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(DailyStatistic).order_by(DailyStatistic.id))
        return result.scalars().all()


async def run_statistics(launcher, run_id, clock=fixed_clock(), parameters=None, cities=("Seoul",)):
    params = dict(parameters or {}, time=run_id)
    job = build_statistics_job(params, clock=clock, config=statistics_settings(cities))
    return await launcher.run(job, params)


class TestStatisticsHelpers:
    """Pure helpers in utils.statistics."""

    @pytest.mark.parametrize(
        "total, expected, rate",
        [
            (1, 24, Decimal("4.17")),
            (12, 24, Decimal("50.00")),
            (24, 24, Decimal("100.00")),
            (0, 24, Decimal("0.00")),
            (2, 3, Decimal("66.67")),
        ],
    )
    def test_collection_rate(self, total, expected, rate):
        assert collection_rate(total, expected) == rate

    def test_collection_rate_without_expected_records(self):
        assert collection_rate(5, 0) is None

    def test_mean_half_up(self):
        assert mean_half_up([50, 51]) == 51
        assert mean_half_up([1013]) == 1013
        assert mean_half_up([1, 2, 2]) == 2
        assert mean_half_up([]) is None

    def test_dominant_weather_tie_goes_to_first_encountered(self):
        counts = weather_counts(["Rain", "Clear", "Clear", "Rain", "Snow"])
        assert dominant_weather(counts) == "Rain"

    def test_dominant_weather_without_classes(self):
        assert dominant_weather(weather_counts([None, None])) == "Unknown"

    def test_summary_of_mixed_day(self):
        observations = [
            make_observation(temperature=10.0, weather_main="Clear", humidity=40, pressure=1010),
            make_observation(temperature=15.5, weather_main="Clouds", humidity=55, pressure=1011,
                             temperature_change=-22.5),
            make_observation(temperature=12.25, weather_main="Rain", humidity=80, pressure=1004,
                             temperature_change=3.0),
            make_observation(temperature=None, weather_main="Snow", humidity=None, pressure=None),
        ]

        summary = summarize_observations(observations)

        assert summary.total_records == 4
        assert summary.avg_temperature == Decimal("12.58")
        assert summary.max_temperature == Decimal("15.50")
        assert summary.min_temperature == Decimal("10.00")
        assert summary.avg_humidity == 58
        assert summary.avg_pressure == 1008
        assert (summary.clear_hours, summary.cloudy_hours, summary.rainy_hours) == (1, 1, 1)
        assert summary.clear_hours + summary.cloudy_hours + summary.rainy_hours <= summary.total_records
        assert summary.abnormal_weather_count == 1
        assert summary.max_temperature_change == Decimal("22.50")

    def test_summary_without_temperature_changes(self):
        summary = summarize_observations([make_observation()])

        assert summary.max_temperature_change == Decimal("0.00")


class TestTargetDate:
    def test_defaults_to_today(self):
        assert resolve_target_date({}, fixed_clock()) == TODAY

    def test_parses_iso_date(self):
        assert resolve_target_date({"date": "2024-07-01"}) == date(2024, 7, 1)

    def test_rejects_invalid_date(self):
        with pytest.raises(ValueError):
            build_statistics_job({"date": "07/01/2024"}, config=statistics_settings())


class TestStatisticsJob:
    """Statistics runs against stored observations."""

    async def test_single_observation(self, launcher, db_session, session_factory):
        db_session.add(make_observation(
            temperature=20.0, humidity=50, pressure=1013, weather_main="Clear",
            collected_at=NOW - timedelta(hours=2),
        ))
        await db_session.commit()

        execution = await run_statistics(launcher, 1)

        assert execution.status == BatchStatus.COMPLETED
        [statistic] = await all_statistics(session_factory)
        assert statistic.statistics_date == TODAY
        assert statistic.city_code == "Seoul"
        assert statistic.avg_temperature == Decimal("20.00")
        assert statistic.max_temperature == Decimal("20.00")
        assert statistic.min_temperature == Decimal("20.00")
        assert statistic.temperature_range == Decimal("0.00")
        assert statistic.avg_humidity == 50
        assert statistic.avg_pressure == 1013
        assert statistic.dominant_weather == "Clear"
        assert statistic.clear_hours == 1
        assert statistic.cloudy_hours == 0
        assert statistic.rainy_hours == 0
        assert statistic.total_records == 1
        assert statistic.data_collection_rate == Decimal("4.17")

    async def test_rerun_updates_the_same_row(self, launcher, db_session, session_factory):
        db_session.add(make_observation(temperature=20.0, collected_at=NOW - timedelta(hours=2)))
        await db_session.commit()

        await run_statistics(launcher, 1, clock=fixed_clock(NOW))
        [first] = await all_statistics(session_factory)

        later = NOW + timedelta(minutes=30)
        execution = await run_statistics(launcher, 2, clock=fixed_clock(later))

        assert execution.status == BatchStatus.COMPLETED
        [second] = await all_statistics(session_factory)
        assert second.id == first.id
        assert second.created_at == first.created_at == NOW
        assert second.updated_at == later

        columns = [c.name for c in DailyStatistic.__table__.columns if c.name != "updated_at"]
        assert {c: getattr(second, c) for c in columns} == {c: getattr(first, c) for c in columns}

    async def test_rerun_picks_up_new_observations(self, launcher, db_session, session_factory):
        db_session.add(make_observation(temperature=20.0, collected_at=NOW - timedelta(hours=3)))
        await db_session.commit()
        await run_statistics(launcher, 1)

        db_session.add(make_observation(temperature=30.0, weather_main="Rain",
                                        collected_at=NOW - timedelta(hours=1)))
        await db_session.commit()
        await run_statistics(launcher, 2)

        [statistic] = await all_statistics(session_factory)
        assert statistic.total_records == 2
        assert statistic.avg_temperature == Decimal("25.00")
        assert statistic.temperature_range == Decimal("10.00")
        assert statistic.rainy_hours == 1
        assert statistic.data_collection_rate == Decimal("8.33")

    async def test_only_target_date_is_summarized(self, launcher, db_session, session_factory):
        db_session.add_all([
            make_observation(temperature=10.0, collected_at=datetime(2024, 7, 1, 0, 0, 0)),
            make_observation(temperature=14.0, collected_at=datetime(2024, 7, 1, 23, 59, 59)),
            make_observation(temperature=99.0, collected_at=datetime(2024, 7, 2, 0, 0, 0)),
        ])
        await db_session.commit()

        await run_statistics(launcher, 1, parameters={"date": "2024-07-01"})

        [statistic] = await all_statistics(session_factory)
        assert statistic.statistics_date == date(2024, 7, 1)
        assert statistic.total_records == 2
        assert statistic.max_temperature == Decimal("14.00")

    async def test_city_without_observations_is_skipped(self, launcher, db_session, session_factory):
        db_session.add(make_observation(city_code="Busan", collected_at=NOW - timedelta(hours=1)))
        await db_session.commit()

        execution = await run_statistics(launcher, 1, cities=("Seoul", "Busan"))

        step = execution.step_executions[0]
        assert step.read_count == 2
        assert step.filter_count == 1
        assert step.write_count == 1
        assert [s.city_code for s in await all_statistics(session_factory)] == ["Busan"]

    async def test_day_without_temperatures(self, launcher, db_session, session_factory):
        db_session.add_all([
            make_observation(temperature=None, weather_main="Clouds", collected_at=NOW - timedelta(hours=2)),
            make_observation(temperature=None, weather_main=None, humidity=None, pressure=None,
                             collected_at=NOW - timedelta(hours=1)),
        ])
        await db_session.commit()

        await run_statistics(launcher, 1)

        [statistic] = await all_statistics(session_factory)
        assert statistic.avg_temperature is None
        assert statistic.max_temperature is None
        assert statistic.min_temperature is None
        assert statistic.temperature_range is None
        assert statistic.avg_humidity == 50
        assert statistic.dominant_weather == "Clouds"
        assert statistic.total_records == 2

    async def test_range_law_and_bucket_sum_over_many_cities(self, launcher, db_session, session_factory):
        cities = ("Seoul", "Busan", "Daegu", "Ulsan")
        mains = ["Clear", "Clouds", "Rain", "Snow", "Thunderstorm", None]
        for index, city in enumerate(cities):
            for hour in range(6):
                db_session.add(make_observation(
                    city_code=city,
                    temperature=round(-5 + (index * 7 + hour * 3.3) % 35, 1),
                    weather_main=mains[(index + hour) % len(mains)],
                    collected_at=datetime.combine(TODAY, datetime.min.time()) + timedelta(hours=hour),
                ))
        await db_session.commit()

        await run_statistics(launcher, 1, cities=cities)

        statistics = await all_statistics(session_factory)
        assert len(statistics) == len(cities)
        for statistic in statistics:
            assert statistic.temperature_range == statistic.max_temperature - statistic.min_temperature
            assert statistic.clear_hours + statistic.cloudy_hours + statistic.rainy_hours <= statistic.total_records
            assert statistic.total_records == 6
            assert statistic.data_collection_rate == Decimal("25.00")
