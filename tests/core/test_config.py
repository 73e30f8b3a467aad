# tests/core/test_config.py

import pytest

from finkube.core.config import Config


def test_cluster_identity_is_read_at_access_time(monkeypatch):
    """Cluster name, id and provider follow the environment after import."""
    cfg = Config()
    monkeypatch.setenv("CLUSTER_NAME", "prod")
    monkeypatch.setenv("CLUSTER_ID", "c-42")
    monkeypatch.setenv("CLOUD_PROVIDER", "ACK")

    assert cfg.CLUSTER_NAME == "prod"
    assert cfg.CLUSTER_ID == "c-42"
    assert cfg.CLOUD_PROVIDER == "ack"


def test_defaults():
    """Pricing and sampling defaults match the agent's documented values."""
    cfg = Config()
    assert cfg.CPUCORE_RAMGB_PRICE_RATIO == 3.0
    assert cfg.METRICS_SAMPLE_PERIOD_SECONDS == 15
    assert cfg.DEFAULT_TIMEOUT_READ == 30


def test_validate_rejects_invalid_ratio():
    """A non-positive CPU/RAM ratio is rejected."""
    cfg = Config()
    cfg.CPUCORE_RAMGB_PRICE_RATIO = 0
    with pytest.raises(ValueError):
        cfg.validate_instance()


def test_validate_rejects_invalid_sample_period():
    """A non-positive sample period is rejected."""
    cfg = Config()
    cfg.METRICS_SAMPLE_PERIOD_SECONDS = -1
    with pytest.raises(ValueError):
        cfg.validate_instance()


def test_bearer_token_read_from_environment(monkeypatch):
    """The query backend token falls back to the environment when no secret file is mounted."""
    monkeypatch.setenv("QUERY_BACKEND_BEARER_TOKEN", "s3cret")
    assert Config().QUERY_BACKEND_BEARER_TOKEN == "s3cret"
