"""
Tests for the batch, weather and results routers.
"""

from datetime import date, timedelta

import pytest

from weather_batch.config import Settings
from weather_batch.services.sample_data import SAMPLE_DAYS

API = "/api/v1"
SAMPLE_COUNT = SAMPLE_DAYS * 24 * 8 + 4


@pytest.fixture
def seeded_client(api_client):
    response = api_client.post(f"{API}/batch/sample-data")
    assert response.status_code == 201
    assert response.json()["count"] == SAMPLE_COUNT
    return api_client


class TestSampleData:
    def test_generate_and_clear(self, seeded_client):
        current = seeded_client.get(f"{API}/weather/current")
        assert current.status_code == 200
        assert len(current.json()) == 8

        response = seeded_client.delete(f"{API}/batch/sample-data")
        assert response.status_code == 200
        assert response.json()["count"] == SAMPLE_COUNT
        assert seeded_client.get(f"{API}/weather/current").json() == []


class TestWeatherEndpoints:
    def test_current_for_city(self, seeded_client):
        response = seeded_client.get(f"{API}/weather/current/Seoul")
        assert response.status_code == 200
        data = response.json()
        assert data["city_code"] == "Seoul"
        assert data["temperature"] == 37.5

    def test_current_for_unknown_city(self, api_client):
        response = api_client.get(f"{API}/weather/current/Atlantis")
        assert response.status_code == 404

    def test_ranking_is_hottest_first(self, seeded_client):
        ranking = seeded_client.get(f"{API}/weather/ranking").json()
        temperatures = [o["temperature"] for o in ranking]
        assert temperatures == sorted(temperatures, reverse=True)
        assert ranking[0]["city_code"] == "Seoul"

    def test_abnormal_listing(self, seeded_client):
        abnormal = seeded_client.get(f"{API}/weather/abnormal").json()
        assert [o["city_code"] for o in abnormal] == ["Incheon"]
        assert abnormal[0]["temperature_change"] == -22.5

    def test_observations_filtered_by_city(self, seeded_client):
        response = seeded_client.get(f"{API}/weather/observations", params={"city_code": "Busan", "hours": 1})
        assert response.status_code == 200
        assert [o["weather_main"] for o in response.json()] == ["Rain"]

    def test_today_summary(self, api_client):
        response = api_client.get(f"{API}/weather/today")
        assert response.status_code == 200
        assert response.json()["total_records"] == 0
        assert response.json()["avg_temperature"] is None


class TestJobEndpoints:
    def test_statistics_job_run(self, seeded_client):
        target = (date.today() - timedelta(days=2)).isoformat()

        response = seeded_client.post(
            f"{API}/batch/jobs/statistics", json={"parameters": {"date": target}}
        )

        assert response.status_code == 200
        execution = response.json()
        assert execution["job_name"] == "generateDailyWeatherStatisticsJob"
        assert execution["status"] == "COMPLETED"
        assert execution["parameters"]["date"] == target
        assert "time" in execution["parameters"]
        [step] = execution["step_executions"]
        assert step["read_count"] == 8
        assert step["write_count"] == 8

        trend = seeded_client.get(f"{API}/results/statistics/Seoul").json()
        seoul = next(s for s in trend if s["statistics_date"] == target)
        assert seoul["total_records"] == 24
        assert seoul["data_collection_rate"] == "100.00"

    def test_alerts_job_and_resolution(self, seeded_client):
        response = seeded_client.post(f"{API}/batch/jobs/alerts")
        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"

        active = seeded_client.get(f"{API}/results/alerts/active").json()
        types = {(a["city_code"], a["alert_type"]) for a in active}
        assert ("Seoul", "HEAT_WAVE") in types
        assert ("Incheon", "ABNORMAL_WEATHER") in types
        assert all(a["is_sent"] for a in active)

        alert_id = active[0]["id"]
        resolved = seeded_client.post(f"{API}/results/alerts/{alert_id}/resolve")
        assert resolved.status_code == 200
        assert resolved.json()["is_resolved"] is True
        assert resolved.json()["resolved_time"] is not None

        again = seeded_client.post(f"{API}/results/alerts/{alert_id}/resolve")
        assert again.status_code == 409

        remaining = seeded_client.get(f"{API}/results/alerts/active").json()
        assert alert_id not in [a["id"] for a in remaining]

    def test_resolve_unknown_alert(self, api_client):
        response = api_client.post(f"{API}/results/alerts/424242/resolve")
        assert response.status_code == 404

    def test_run_all(self, seeded_client):
        response = seeded_client.post(f"{API}/batch/jobs/run-all")
        assert response.status_code == 200
        executions = response.json()
        assert [e["job_name"] for e in executions] == [
            "generateDailyWeatherStatisticsJob",
            "generateWeatherAlertsJob",
        ]
        assert all(e["status"] == "COMPLETED" for e in executions)

        status = seeded_client.get(f"{API}/status").json()
        assert status["jobs"]["statistics"]["last_status"] == "COMPLETED"
        assert status["jobs"]["alerts"]["last_status"] == "COMPLETED"
        assert status["jobs"]["collection"]["last_status"] is None

    def test_same_parameters_twice_conflict(self, api_client):
        body = {"parameters": {"time": 1}}
        first = api_client.post(f"{API}/batch/jobs/statistics", json=body)
        second = api_client.post(f"{API}/batch/jobs/statistics", json=body)

        assert first.status_code == 200
        assert second.status_code == 409

    def test_unknown_job(self, api_client):
        response = api_client.post(f"{API}/batch/jobs/cleanupJob")
        assert response.status_code == 404

    def test_invalid_date_parameter(self, api_client):
        response = api_client.post(f"{API}/batch/jobs/statistics", json={"parameters": {"date": "yesterday"}})
        assert response.status_code == 422

    def test_collection_without_provider_key(self, api_client, monkeypatch):
        monkeypatch.setattr("weather_batch.routers.batch.settings", Settings(WEATHER_API_KEY=None))

        response = api_client.post(f"{API}/batch/jobs/collection")

        assert response.status_code == 503

    def test_execution_listing(self, api_client):
        api_client.post(f"{API}/batch/jobs/statistics")
        api_client.post(f"{API}/batch/jobs/alerts")

        executions = api_client.get(f"{API}/batch/executions").json()
        assert [e["job_name"] for e in executions] == [
            "generateWeatherAlertsJob",
            "generateDailyWeatherStatisticsJob",
        ]
        only_alerts = api_client.get(f"{API}/batch/executions", params={"job": "alerts"}).json()
        assert len(only_alerts) == 1

        detail = api_client.get(f"{API}/batch/executions/{only_alerts[0]['id']}")
        assert detail.status_code == 200
        assert detail.json()["step_executions"][0]["step_name"] == "weatherAlertStep"

        assert api_client.get(f"{API}/batch/executions/9999").status_code == 404
        assert api_client.get(f"{API}/batch/executions", params={"job": "nope"}).status_code == 404

    def test_dispatch_with_nothing_pending(self, api_client):
        response = api_client.post(f"{API}/batch/alerts/dispatch")
        assert response.status_code == 200
        assert response.json() == {"sent": 0, "failed": 0}


class TestResultsEndpoints:
    def test_overview(self, seeded_client):
        seeded_client.post(f"{API}/batch/jobs/run-all")

        response = seeded_client.get(f"{API}/results/overview")

        assert response.status_code == 200
        data = response.json()
        assert data["observation_count"] == SAMPLE_COUNT
        assert data["alert_count"] >= 4
        assert data["alert_summary"]["total"] == data["alert_count"]
        assert data["alert_summary"]["send_success_rate"] == 100.0
        assert data["unsent_alerts"] == []
        assert sum(data["counts_by_type"].values()) == data["alert_count"]

    def test_alert_summary_without_alerts(self, api_client):
        response = api_client.get(f"{API}/results/alerts/summary")
        assert response.json() == {"total": 0, "sent": 0, "send_success_rate": None}

    def test_trend_with_reversed_dates(self, api_client):
        response = api_client.get(
            f"{API}/results/statistics/Seoul", params={"start": "2024-07-10", "end": "2024-07-01"}
        )
        assert response.status_code == 400

    def test_national_average_without_data(self, api_client):
        response = api_client.get(f"{API}/results/statistics/national-average")
        assert response.status_code == 200
        assert response.json()["avg_temperature"] is None


class TestOperatorAuth:
    @pytest.fixture(autouse=True)
    def operator_key(self, monkeypatch):
        monkeypatch.setattr("weather_batch.dependencies.auth.settings", Settings(OPERATOR_API_KEY="secret"))

    def test_missing_key(self, api_client):
        response = api_client.post(f"{API}/batch/alerts/dispatch")
        assert response.status_code == 401

    def test_wrong_key(self, api_client):
        response = api_client.post(f"{API}/batch/alerts/dispatch", headers={"X-API-Key": "guess"})
        assert response.status_code == 401

    def test_valid_key(self, api_client):
        response = api_client.post(f"{API}/batch/alerts/dispatch", headers={"X-API-Key": "secret"})
        assert response.status_code == 200

    def test_read_endpoints_stay_open(self, api_client):
        assert api_client.get(f"{API}/results/alerts/active").status_code == 200
