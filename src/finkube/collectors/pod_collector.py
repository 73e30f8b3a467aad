# src/finkube/collectors/pod_collector.py
"""
Collects pods, with their container resource requests, from the
Kubernetes API.
"""

import logging
from typing import Dict, List

from ..core.k8s_client import get_core_v1_api
from ..models.usage import ContainerRequests
from ..utils.k8s_utils import parse_cpu_request, parse_memory_request
from ..utils.units import bytes_to_gib, millicores_to_cores
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)


def parse_pod_requests(pod) -> Dict[str, ContainerRequests]:
    """
    Returns the CPU (cores) and memory (GiB) requests of every container.

    Containers without requests are reported with zeros so they still get
    a request series.
    """
    requests: Dict[str, ContainerRequests] = {}
    if not pod.spec or not pod.spec.containers:
        return requests
    for container in pod.spec.containers:
        declared = (container.resources.requests if container.resources else None) or {}
        requests[container.name] = ContainerRequests(
            cpu_cores=millicores_to_cores(parse_cpu_request(declared.get("cpu"))),
            memory_gib=bytes_to_gib(parse_memory_request(declared.get("memory"))),
        )
    return requests


class PodCollector(BaseCollector):
    """
    Connects to the K8s API to list every pod of every namespace.
    """

    def __init__(self, api=None):
        super().__init__(api=api, api_factory=get_core_v1_api)

    async def collect(self) -> List:
        api = await self._ensure_client()
        pod_list = await self._call("list pods", api.list_pod_for_all_namespaces, watch=False)
        logger.debug(f"Listed {len(pod_list.items)} pods.")
        return list(pod_list.items)
