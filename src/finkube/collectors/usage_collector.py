# src/finkube/collectors/usage_collector.py
"""
Reads live CPU and memory usage from the metrics.k8s.io API served by
metrics-server.
"""

import logging
from typing import Dict, Tuple

from ..core.k8s_client import get_custom_objects_api
from ..models.usage import ResourceUsage
from ..utils.k8s_utils import parse_cpu_request, parse_memory_request
from ..utils.units import bytes_to_gib, millicores_to_cores
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)

METRICS_GROUP = "metrics.k8s.io"
METRICS_VERSION = "v1beta1"


def parse_usage(usage: Dict[str, str]) -> ResourceUsage:
    """Converts a metrics-server usage map ('250m', '1024Ki') to cores and GiB."""
    usage = usage or {}
    return ResourceUsage(
        cpu_cores=millicores_to_cores(parse_cpu_request(usage.get("cpu"))),
        memory_gib=bytes_to_gib(parse_memory_request(usage.get("memory"))),
    )


class UsageCollector(BaseCollector):
    """Collects node and per-container pod usage."""

    def __init__(self, api=None):
        super().__init__(api=api, api_factory=get_custom_objects_api)

    async def collect(self) -> Dict[str, ResourceUsage]:
        return await self.collect_node_usage()

    async def collect_node_usage(self) -> Dict[str, ResourceUsage]:
        """Usage per node name."""
        api = await self._ensure_client()
        result = await self._call(
            "list node metrics", api.list_cluster_custom_object, METRICS_GROUP, METRICS_VERSION, "nodes"
        )
        usage: Dict[str, ResourceUsage] = {}
        for item in result.get("items", []):
            try:
                usage[item["metadata"]["name"]] = parse_usage(item.get("usage"))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed node metrics entry: {e}")
        return usage

    async def collect_pod_usage(self) -> Dict[Tuple[str, str], Dict[str, ResourceUsage]]:
        """Usage per (namespace, pod) and container name."""
        api = await self._ensure_client()
        result = await self._call(
            "list pod metrics, metrics-server may not be installed",
            api.list_cluster_custom_object,
            METRICS_GROUP,
            METRICS_VERSION,
            "pods",
        )
        usage: Dict[Tuple[str, str], Dict[str, ResourceUsage]] = {}
        for item in result.get("items", []):
            try:
                key = (item["metadata"]["namespace"], item["metadata"]["name"])
                usage[key] = {c["name"]: parse_usage(c.get("usage")) for c in item.get("containers", [])}
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed pod metrics entry: {e}")
        return usage
