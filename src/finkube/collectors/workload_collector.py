# src/finkube/collectors/workload_collector.py

import logging
from typing import List

from ..core.k8s_client import get_apps_v1_api
from ..models.usage import Workload
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)

WORKLOAD_KINDS = (
    ("daemonset", "list_daemon_set_for_all_namespaces"),
    ("statefulset", "list_stateful_set_for_all_namespaces"),
    ("deployment", "list_deployment_for_all_namespaces"),
)


class WorkloadCollector(BaseCollector):
    """Lists DaemonSets, StatefulSets and Deployments with their pod selectors."""

    def __init__(self, api=None):
        super().__init__(api=api, api_factory=get_apps_v1_api)

    async def collect(self) -> List[Workload]:
        api = await self._ensure_client()
        workloads: List[Workload] = []
        for workload_type, method in WORKLOAD_KINDS:
            result = await self._call(f"list {workload_type}s", getattr(api, method), watch=False)
            for item in result.items:
                selector = item.spec.selector if item.spec else None
                workloads.append(
                    Workload(
                        workload_type=workload_type,
                        name=item.metadata.name,
                        namespace=item.metadata.namespace,
                        labels=item.metadata.labels or {},
                        match_labels=selector.match_labels if selector else None,
                    )
                )
        logger.debug(f"Listed {len(workloads)} workloads.")
        return workloads
