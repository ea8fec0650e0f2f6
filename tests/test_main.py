"""
Tests for main application endpoints.
"""

from weather_batch import __version__
from weather_batch.config import settings


def test_root_endpoint(api_client):
    """Test root endpoint returns API info."""
    response = api_client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == f"Welcome to {settings.SERVER_NAME}"
    assert data["version"] == __version__
    assert data["docs"] == "/docs"


def test_health_check(api_client):
    """Test health check endpoint."""
    response = api_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_openapi_lists_routers(api_client):
    """Test every router is mounted under the API prefix."""
    response = api_client.get(f"{settings.API_V1_STR}/openapi.json")
    assert response.status_code == 200
    paths = response.json()["paths"]
    for path in (
        "/api/v1/status",
        "/api/v1/batch/jobs/{job}",
        "/api/v1/batch/jobs/run-all",
        "/api/v1/weather/current",
        "/api/v1/results/overview",
        "/api/v1/results/alerts/{alert_id}/resolve",
    ):
        assert path in paths


def test_status_before_any_run(api_client):
    """Test status reports every job with no previous run."""
    response = api_client.get("/api/v1/status")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["cities"] == len(settings.CITY_CODES)
    assert set(data["jobs"]) == {"collection", "statistics", "alerts"}
    assert all(job["last_status"] is None for job in data["jobs"].values())


def test_cities(api_client):
    """Test the city roster is listed with display names."""
    response = api_client.get("/api/v1/weather/cities")
    assert response.status_code == 200
    cities = response.json()
    assert [c["code"] for c in cities] == settings.CITY_CODES
    assert cities[0] == {"code": "Seoul", "name": settings.city_name("Seoul")}
