# tests/api/test_agent_app.py
"""
Tests for the app the agent serves its gauges from.
"""

from fastapi.testclient import TestClient

from finkube.api.app import create_agent_app
from finkube.metrics import names
from finkube.metrics.sink import MetricsSink


def test_metrics_endpoint_exposes_gauges():
    """GET /metrics returns the sink's gauges in the Prometheus text format."""
    sink = MetricsSink()
    batch = sink.batch([names.CLUSTER_ACTIVE])
    batch.set(
        names.CLUSTER_ACTIVE,
        {names.REGION: "r", names.CLOUD_PROVIDER: "default", names.CLUSTER_NAME: "prod", names.CLUSTER_ID: "c1"},
        1,
    )
    batch.commit()

    with TestClient(create_agent_app(sink)) as c:
        response = c.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "finkube_cluster_active{" in response.text


def test_agent_healthz():
    """GET /healthz answers ok."""
    with TestClient(create_agent_app(MetricsSink())) as c:
        response = c.get("/healthz")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
