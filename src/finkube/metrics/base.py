# src/finkube/metrics/base.py
"""
Shared plumbing of the per-dimension metric emitters.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from ..cloudprice.base import CloudPriceProvider
from ..collectors.node_collector import NodeCollector
from ..collectors.pod_collector import PodCollector, parse_pod_requests
from ..collectors.usage_collector import UsageCollector
from ..collectors.workload_collector import WorkloadCollector
from ..core.exceptions import PerEntityError, PriceResolutionError, UpstreamQueryError
from ..models.pricing import ClusterInfo, InstancePrice
from ..utils.k8s_utils import pod_key, pod_node_name
from . import names
from .sink import MetricsSink

logger = logging.getLogger(__name__)

# Failures that only disqualify a single node or pod for the current tick.
ENTITY_ERRORS = (PerEntityError, PriceResolutionError, UpstreamQueryError)


class ClusterState:
    """Bundles the collectors the emitters read live cluster state from."""

    def __init__(
        self,
        nodes: Optional[NodeCollector] = None,
        pods: Optional[PodCollector] = None,
        workloads: Optional[WorkloadCollector] = None,
        usage: Optional[UsageCollector] = None,
    ):
        self.nodes = nodes or NodeCollector()
        self.pods = pods or PodCollector()
        self.workloads = workloads or WorkloadCollector()
        self.usage = usage or UsageCollector()

    async def close(self):
        for collector in (self.nodes, self.pods, self.workloads, self.usage):
            await collector.close()


def labels_json(labels: Optional[Dict[str, str]]) -> str:
    return json.dumps(labels or {}, sort_keys=True, separators=(",", ":"))


def pod_hourly_cost(pod, price: InstancePrice) -> float:
    """
    Hourly cost of a pod from its requests and its node's CPU and memory prices.

    Raises:
        PerEntityError: If a container declares an unparsable request.
    """
    try:
        requests = parse_pod_requests(pod)
    except ValueError as e:
        raise PerEntityError(f"Pod {pod_key(pod)} has invalid resource requests: {e}") from e
    return sum(r.cpu_cores * price.cpu_hourly + r.memory_gib * price.ram_hourly for r in requests.values())


class BaseMetricsEmitter(ABC):
    """
    One emitter per entity dimension. `collect()` is a single tick: it
    builds the full snapshot of its metrics and commits it to the sink.
    """

    name: str = "base"

    def __init__(self, sink: MetricsSink, provider: CloudPriceProvider, state: ClusterState, cluster: ClusterInfo):
        self.sink = sink
        self.provider = provider
        self.state = state
        self.cluster = cluster

    @abstractmethod
    async def collect(self) -> None:
        pass

    async def price_nodes(self, nodes: Iterable) -> Dict[str, InstancePrice]:
        """Prices every node; nodes that cannot be priced are logged and left out."""
        prices: Dict[str, InstancePrice] = {}
        for node in nodes:
            node_name = node.metadata.name
            try:
                prices[node_name] = await self.provider.get_node_hourly_price(node)
            except ENTITY_ERRORS as e:
                logger.error(f"Get node '{node_name}' price from cloud provider error: {e}")
        return prices

    def pod_costs(self, pods: Iterable, prices: Dict[str, InstancePrice]) -> Dict[str, float]:
        """
        Hourly cost per pod key. Unscheduled pods cost nothing; pods whose
        node has no price are left out.
        """
        costs: Dict[str, float] = {}
        for pod in pods:
            node_name = pod_node_name(pod)
            if not node_name:
                costs[pod_key(pod)] = 0.0
                continue
            try:
                price = prices.get(node_name)
                if price is None:
                    raise PerEntityError(f"No price for node '{node_name}'")
                costs[pod_key(pod)] = pod_hourly_cost(pod, price)
            except PerEntityError as e:
                logger.warning(f"Skipping cost of pod {pod_key(pod)}: {e}")
        return costs

    async def pod_usage(self) -> Optional[Dict]:
        """Per-container usage, or None when metrics-server cannot be read this tick."""
        try:
            return await self.state.usage.collect_pod_usage()
        except UpstreamQueryError as e:
            logger.warning(f"List all pod metrics error: {e}")
            return None

    @property
    def cluster_labels(self) -> Dict[str, str]:
        return {names.CLUSTER_NAME: self.cluster.cluster_name, names.CLUSTER_ID: self.cluster.cluster_id}
