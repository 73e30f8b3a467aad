# tests/metrics/test_emitters.py
"""
Tests for the metric emitters, with mocked collectors and price provider.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from finkube.core.exceptions import PerEntityError, UpstreamQueryError
from finkube.core.tracker import NodeResourceTracker
from finkube.metrics import names
from finkube.metrics.base import ClusterState, pod_hourly_cost
from finkube.metrics.cluster_metrics import ClusterMetricsEmitter
from finkube.metrics.emitter import MetricsEmitter
from finkube.metrics.node_metrics import NodeMetricsEmitter
from finkube.metrics.pod_metrics import PodMetricsEmitter
from finkube.metrics.sink import MetricsSink
from finkube.metrics.workload_metrics import WorkloadMetricsEmitter, select_pods
from finkube.models.usage import ResourceUsage, Workload

CLUSTER_LABELS = {names.CLUSTER_NAME: "test-cluster", names.CLUSTER_ID: "c-test"}


@pytest.fixture
def provider(instance_price):
    """Prices node-1; every other node lacks its pricing labels."""

    async def price(node):
        if node.metadata.name == "node-1":
            return instance_price
        raise PerEntityError(f"Node '{node.metadata.name}' has no labels")

    provider = MagicMock()
    provider.get_node_hourly_price = AsyncMock(side_effect=price)
    return provider


def make_state(nodes=(), pods=(), workloads=(), node_usage=None, pod_usage=None):
    state = ClusterState(nodes=MagicMock(), pods=MagicMock(), workloads=MagicMock(), usage=MagicMock())
    state.nodes.collect = AsyncMock(return_value=list(nodes))
    state.pods.collect = AsyncMock(return_value=list(pods))
    state.workloads.collect = AsyncMock(return_value=list(workloads))
    state.usage.collect_node_usage = AsyncMock(return_value=node_usage or {})
    state.usage.collect_pod_usage = AsyncMock(return_value=pod_usage or {})
    for collector in (state.nodes, state.pods, state.workloads, state.usage):
        collector.close = AsyncMock()
    return state


def node_resource_labels(resource, node="node-1"):
    return {names.NODE: node, names.RESOURCE: resource, names.BILLING_MODE: "ondemand", **CLUSTER_LABELS}


def pod_labels(pod, namespace="default", **extra):
    return {names.NAMESPACE: namespace, names.POD: pod, names.LABELS: "{}", **CLUSTER_LABELS, **extra}


def test_pod_hourly_cost(pod_factory, instance_price):
    """Pod cost is cores times the core price plus GiB times the GiB price, over every container."""
    pod = pod_factory(containers={"app": {"cpu": "1", "memory": "2Gi"}, "sidecar": {"cpu": "500m"}})

    cost = pod_hourly_cost(pod, instance_price)

    assert cost == pytest.approx(1.5 * instance_price.cpu_hourly + 2 * instance_price.ram_hourly)


@pytest.mark.asyncio
async def test_node_emitter(provider, cluster_info, node_factory, pod_factory):
    """Node costs, capacity and allocation are emitted; an unpriceable node is skipped."""
    node = node_factory(cpu="4", memory="16Gi", allocatable={"cpu": "3800m", "memory": "15Gi"})
    sink = MetricsSink()
    state = make_state(
        nodes=[node, node_factory(name="node-2")],
        node_usage={"node-1": ResourceUsage(cpu_cores=1.5, memory_gib=4.0)},
    )
    async with NodeResourceTracker() as tracker:
        await tracker.add_node(node)
        await tracker.add_pod(pod_factory(containers={"app": {"cpu": "1", "memory": "1Gi"}}))

        await NodeMetricsEmitter(sink, provider, state, cluster_info, tracker).collect()

    cost_labels = {
        names.NODE: "node-1",
        names.INSTANCE_TYPE: "ecs.g6.xlarge",
        names.BILLING_MODE: "ondemand",
        names.BILLING_PERIOD: "0",
        names.REGION: "cn-hangzhou",
        names.CLOUD_PROVIDER: "ack",
        **CLUSTER_LABELS,
    }
    total = sink.get(names.NODE_TOTAL_HOURLY_COST, cost_labels)
    cpu_cost = sink.get(names.NODE_RESOURCE_HOURLY_COST, {**cost_labels, names.RESOURCE: "cpu"})
    ram_cost = sink.get(names.NODE_RESOURCE_HOURLY_COST, {**cost_labels, names.RESOURCE: "memory"})
    assert total == pytest.approx(1.0)
    assert sink.get(names.NODE_CPU_CORE_HOURLY_COST, cost_labels) == pytest.approx(0.75)
    assert cpu_cost == pytest.approx(0.75 * 4)
    assert ram_cost == pytest.approx(0.25 * 16)

    cpu = node_resource_labels("cpu")
    memory = node_resource_labels("memory")
    assert sink.get(names.NODE_RESOURCE_TOTAL, cpu) == 4
    assert sink.get(names.NODE_RESOURCE_SYSTEM_TAKEN, cpu) == pytest.approx(0.2)
    assert sink.get(names.NODE_RESOURCE_AVAILABLE, cpu) == pytest.approx(2.8)
    assert sink.get(names.NODE_RESOURCE_SYSTEM_TAKEN, memory) == pytest.approx(1.0)
    assert sink.get(names.NODE_RESOURCE_AVAILABLE, memory) == pytest.approx(14.0)
    assert sink.get(names.NODE_RESOURCE_USAGE, cpu) == pytest.approx(1.5)

    assert sink.get(names.NODE_RESOURCE_TOTAL, node_resource_labels("cpu", node="node-2")) is None


@pytest.mark.asyncio
async def test_node_emitter_without_metrics_server(provider, cluster_info, node_factory):
    """When usage cannot be read, costs are still emitted and usage is left out."""
    sink = MetricsSink()
    state = make_state(nodes=[node_factory()])
    state.usage.collect_node_usage = AsyncMock(side_effect=UpstreamQueryError("metrics-server missing"))
    async with NodeResourceTracker() as tracker:
        await NodeMetricsEmitter(sink, provider, state, cluster_info, tracker).collect()

    assert sink.get(names.NODE_RESOURCE_TOTAL, node_resource_labels("cpu")) == 4
    assert sink.get(names.NODE_RESOURCE_USAGE, node_resource_labels("cpu")) is None


@pytest.mark.asyncio
async def test_pod_emitter(provider, cluster_info, instance_price, node_factory, pod_factory):
    """Scheduled pods are priced from their node, pending pods cost nothing."""
    sink = MetricsSink()
    pods = [
        pod_factory(name="pod-a", containers={"app": {"cpu": "1", "memory": "2Gi"}}),
        pod_factory(name="pending", node_name=None),
        pod_factory(name="orphan", node_name="node-2"),
    ]
    state = make_state(
        nodes=[node_factory(), node_factory(name="node-2")],
        pods=pods,
        pod_usage={("default", "pod-a"): {"app": ResourceUsage(cpu_cores=0.5, memory_gib=1.0)}},
    )

    await PodMetricsEmitter(sink, provider, state, cluster_info).collect()

    cost = sink.get(names.POD_RESOURCE_COST, pod_labels("pod-a", resource="cost", scheduled="true"))
    assert cost == pytest.approx(instance_price.cpu_hourly + 2 * instance_price.ram_hourly)
    assert sink.get(names.POD_RESOURCE_COST, pod_labels("pending", resource="cost", scheduled="false")) == 0.0
    assert sink.get(names.POD_RESOURCE_COST, pod_labels("orphan", resource="cost", scheduled="true")) is None

    # Requests are emitted for every pod, priced or not.
    assert sink.get(names.POD_RESOURCE_REQUEST, pod_labels("orphan", container="app", resource="cpu")) == 1.0
    assert sink.get(names.POD_RESOURCE_REQUEST, pod_labels("pod-a", container="app", resource="memory")) == 2.0
    assert sink.get(names.POD_RESOURCE_USAGE, pod_labels("pod-a", container="app", resource="cpu")) == 0.5


@pytest.mark.asyncio
async def test_pod_emitter_drops_deleted_pods(provider, cluster_info, node_factory, pod_factory):
    """A pod gone since the previous tick is no longer exported."""
    sink = MetricsSink()
    pod = pod_factory(name="short-lived")
    state = make_state(nodes=[node_factory()], pods=[pod])
    emitter = PodMetricsEmitter(sink, provider, state, cluster_info)
    await emitter.collect()
    labels = pod_labels("short-lived", resource="cost", scheduled="true")
    assert sink.get(names.POD_RESOURCE_COST, labels) is not None

    state.pods.collect = AsyncMock(return_value=[])
    await emitter.collect()

    assert sink.get(names.POD_RESOURCE_COST, labels) is None


@pytest.mark.asyncio
async def test_workload_emitter(provider, cluster_info, instance_price, node_factory, pod_factory):
    """Workload cost, pod count and requests are summed over the pods its selector matches."""
    sink = MetricsSink()
    pods = [
        pod_factory(name="web-1", labels={"app": "web"}, containers={"app": {"cpu": "1"}}),
        pod_factory(name="web-2", labels={"app": "web"}, containers={"app": {"cpu": "1"}}),
        pod_factory(name="web-pending", labels={"app": "web"}, node_name=None, containers={"app": {"cpu": "1"}}),
        pod_factory(name="db-1", labels={"app": "db"}),
        pod_factory(name="web-elsewhere", namespace="other", labels={"app": "web"}),
    ]
    workload = Workload(
        workload_type="deployment",
        name="web",
        namespace="default",
        labels={"team": "shop"},
        match_labels={"app": "web"},
    )
    state = make_state(nodes=[node_factory()], pods=pods, workloads=[workload])

    await WorkloadMetricsEmitter(sink, provider, state, cluster_info).collect()

    base = {
        names.WORKLOAD_TYPE: "deployment",
        names.WORKLOAD_NAME: "web",
        names.NAMESPACE: "default",
        names.LABELS: json.dumps({"team": "shop"}, separators=(",", ":")),
        **CLUSTER_LABELS,
    }
    assert sink.get(names.WORKLOAD_POD_COUNT, {**base, names.RESOURCE: "pod"}) == 3
    assert sink.get(names.WORKLOAD_RESOURCE_COST, {**base, names.RESOURCE: "cost"}) == pytest.approx(
        2 * instance_price.cpu_hourly
    )
    request_labels = {**base, names.RESOURCE: "cpu", names.CONTAINER: "app"}
    assert sink.get(names.WORKLOAD_RESOURCE_REQUEST, request_labels) == pytest.approx(3.0)


@pytest.mark.asyncio
async def test_cluster_emitter_heartbeat(provider, cluster_info, node_factory):
    """The heartbeat carries the region and provider of the first node's price."""
    sink = MetricsSink()
    state = make_state(nodes=[node_factory()])

    await ClusterMetricsEmitter(sink, provider, state, cluster_info).collect()

    labels = {names.REGION: "cn-hangzhou", names.CLOUD_PROVIDER: "ack", **CLUSTER_LABELS}
    assert sink.get(names.CLUSTER_ACTIVE, labels) == 1


@pytest.mark.asyncio
async def test_cluster_emitter_without_nodes(provider, cluster_info):
    """Without nodes no heartbeat is written."""
    sink = MetricsSink()

    await ClusterMetricsEmitter(sink, provider, make_state(), cluster_info).collect()

    assert b"finkube_cluster_active{" not in sink.exposition()
    provider.get_node_hourly_price.assert_not_awaited()


@pytest.mark.asyncio
async def test_metrics_emitter_runs_one_loop_per_dimension(provider, cluster_info):
    """Starting the emitter schedules the cluster, node, pod and workload loops."""
    async with NodeResourceTracker() as tracker:
        emitter = MetricsEmitter(
            MetricsSink(), provider, tracker, cluster_info, state=make_state(), interval_seconds=3600
        )
        emitter.start()

        assert sorted(task.get_name() for task in emitter.scheduler.tasks) == [
            "cluster-metrics",
            "node-metrics",
            "pod-metrics",
            "workload-metrics",
        ]
        await emitter.stop()
        assert emitter.scheduler.tasks == []
        emitter.state.usage.close.assert_awaited_once()


def test_workload_without_match_labels_selects_its_namespace(pod_factory):
    """An empty matchLabels selects every pod of the workload's namespace."""
    pods = [pod_factory(name="a"), pod_factory(name="b"), pod_factory(name="c", namespace="other")]
    workload = Workload(workload_type="daemonset", name="agent", namespace="default", match_labels={})

    assert [pod.metadata.name for pod in select_pods(workload, pods)] == ["a", "b"]
