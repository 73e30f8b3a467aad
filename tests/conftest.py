# tests/conftest.py

import pytest
from kubernetes_asyncio.client import (
    V1Container,
    V1Node,
    V1NodeSpec,
    V1NodeStatus,
    V1ObjectMeta,
    V1Pod,
    V1PodSpec,
    V1ResourceRequirements,
)

from finkube.models.pricing import ClusterInfo, InstancePrice


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Pytest fixture to mock environment variables for the config module.

    This fixture runs automatically for every test (`autouse=True`). It uses
    monkeypatch to set environment variables, ensuring that the cluster
    identity read at access time is predictable.
    """
    monkeypatch.setenv("CLUSTER_NAME", "test-cluster")
    monkeypatch.setenv("CLUSTER_ID", "c-test")
    monkeypatch.delenv("CLOUD_PROVIDER", raising=False)


def make_node(name="node-1", cpu="4", memory="16Gi", allocatable=None, labels=None, provider_id=None):
    """Builds a V1Node with the given capacity; allocatable defaults to the capacity."""
    capacity = {"cpu": cpu, "memory": memory}
    return V1Node(
        metadata=V1ObjectMeta(name=name, labels=labels),
        spec=V1NodeSpec(provider_id=provider_id),
        status=V1NodeStatus(capacity=capacity, allocatable=allocatable or dict(capacity)),
    )


def make_pod(name="pod-1", namespace="default", node_name="node-1", containers=None, labels=None):
    """
    Builds a V1Pod. `containers` maps container names to their requests,
    e.g. {"app": {"cpu": "500m", "memory": "1Gi"}}.
    """
    containers = containers if containers is not None else {"app": {"cpu": "1", "memory": "1Gi"}}
    return V1Pod(
        metadata=V1ObjectMeta(name=name, namespace=namespace, labels=labels),
        spec=V1PodSpec(
            node_name=node_name,
            containers=[
                V1Container(name=cname, resources=V1ResourceRequirements(requests=requests))
                for cname, requests in containers.items()
            ],
        ),
    )


@pytest.fixture
def node_factory():
    return make_node


@pytest.fixture
def pod_factory():
    return make_pod


@pytest.fixture
def cluster_info():
    return ClusterInfo(cluster_name="test-cluster", cluster_id="c-test")


@pytest.fixture
def instance_price():
    """A 4 core / 16 GiB on-demand node at 1.00 per hour, split 3:1."""
    return InstancePrice(
        region="cn-hangzhou",
        instance_type="ecs.g6.xlarge",
        total_hourly=1.0,
        cpu_hourly=0.75,
        ram_hourly=0.25,
        cpu_core_count=4,
        ram_capacity_gib=16,
        cloud_provider="ack",
    )
