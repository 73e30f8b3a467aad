# tests/api/test_health.py
"""
Tests for the health, version and config endpoints.
"""

from fastapi.testclient import TestClient

from finkube import __version__
from finkube.api.app import create_app


def test_health(client):
    """GET /api/v1/health returns ok and the version."""
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


def test_version(client):
    """GET /api/v1/version returns the package version."""
    response = client.get("/api/v1/version")
    assert response.status_code == 200
    assert response.json()["version"] == __version__


def test_config_hides_the_bearer_token(client):
    """GET /api/v1/config exposes settings but never the backend token."""
    response = client.get("/api/v1/config")
    assert response.status_code == 200
    data = response.json()
    assert data["metrics_sample_period_seconds"] == 15
    assert "query_backend_endpoint" in data
    assert all("token" not in key for key in data)


def test_analyzer_missing_is_service_unavailable():
    """Without the lifespan-created analyzer, query routes answer 503."""
    with TestClient(create_app()) as c:
        response = c.get("/api/v1/clusters/c1/costs/namespace")
    assert response.status_code == 503
