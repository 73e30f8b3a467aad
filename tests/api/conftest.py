# tests/api/conftest.py
"""
Shared fixtures for API tests.
Uses FastAPI's TestClient with dependency overrides to inject a mock analyzer.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from finkube.api.app import create_app
from finkube.api.dependencies import get_analyzer


@pytest.fixture
def mock_analyzer():
    """Returns a mock CostAnalyzer answering every view with no data."""
    analyzer = AsyncMock()
    analyzer.cluster_resource_costs = AsyncMock(return_value=[])
    analyzer.namespace_costs = AsyncMock(return_value=[])
    analyzer.workload_costs = AsyncMock(return_value=[])
    analyzer.cluster_resource_metrics = AsyncMock(return_value=[])
    return analyzer


@pytest.fixture
def client(mock_analyzer):
    """Creates a TestClient with the analyzer dependency overridden."""
    app = create_app()
    app.dependency_overrides[get_analyzer] = lambda: mock_analyzer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
