# src/finkube/metrics/workload_metrics.py

import logging
from typing import List

from ..collectors.pod_collector import parse_pod_requests
from ..models.usage import Workload
from ..utils.k8s_utils import pod_key, pod_node_name, selector_matches
from . import names
from .base import BaseMetricsEmitter, labels_json

logger = logging.getLogger(__name__)


def select_pods(workload: Workload, pods: List) -> List:
    """Pods of the workload's namespace matched by its `matchLabels`."""
    return [
        pod
        for pod in pods
        if pod.metadata.namespace == workload.namespace
        and selector_matches(workload.match_labels, pod.metadata.labels)
    ]


class WorkloadMetricsEmitter(BaseMetricsEmitter):
    """
    DaemonSet, StatefulSet and Deployment totals, summed over their pods.
    """

    name = "workload"

    async def collect(self) -> None:
        workloads = await self.state.workloads.collect()
        pods = await self.state.pods.collect()
        nodes = await self.state.nodes.collect()
        prices = await self.price_nodes(nodes)
        costs = self.pod_costs(pods, prices)
        usage = await self.pod_usage()

        metric_names = (names.WORKLOAD_POD_COUNT, names.WORKLOAD_RESOURCE_COST, names.WORKLOAD_RESOURCE_REQUEST)
        if usage is not None:
            metric_names += (names.WORKLOAD_RESOURCE_USAGE,)
        batch = self.sink.batch(metric_names)

        for workload in workloads:
            selected = select_pods(workload, pods)
            base_labels = {
                names.WORKLOAD_TYPE: workload.workload_type,
                names.WORKLOAD_NAME: workload.name,
                names.NAMESPACE: workload.namespace,
                names.LABELS: labels_json(workload.labels),
                **self.cluster_labels,
            }
            batch.set(names.WORKLOAD_POD_COUNT, {**base_labels, names.RESOURCE: names.RESOURCE_POD}, len(selected))

            scheduled = [pod for pod in selected if pod_node_name(pod)]
            cost = sum(costs.get(pod_key(pod), 0.0) for pod in scheduled)
            batch.set(names.WORKLOAD_RESOURCE_COST, {**base_labels, names.RESOURCE: names.RESOURCE_COST}, cost)

            for pod in selected:
                try:
                    requests = parse_pod_requests(pod)
                except ValueError as e:
                    logger.warning(f"Skipping requests of pod {pod_key(pod)}: {e}")
                    continue
                for container, request in requests.items():
                    self._add_per_container(
                        batch,
                        names.WORKLOAD_RESOURCE_REQUEST,
                        base_labels,
                        container,
                        request.cpu_cores,
                        request.memory_gib,
                    )

            if usage is None:
                continue
            for pod in selected:
                for container, used in usage.get((pod.metadata.namespace, pod.metadata.name), {}).items():
                    self._add_per_container(
                        batch, names.WORKLOAD_RESOURCE_USAGE, base_labels, container, used.cpu_cores, used.memory_gib
                    )

        batch.commit()
        logger.debug(f"Emitted workload metrics for {len(workloads)} workloads.")

    @staticmethod
    def _add_per_container(batch, metric: str, base_labels: dict, container: str, cpu: float, memory: float):
        container_labels = {**base_labels, names.CONTAINER: container}
        batch.add(metric, {**container_labels, names.RESOURCE: names.RESOURCE_CPU}, cpu)
        batch.add(metric, {**container_labels, names.RESOURCE: names.RESOURCE_MEMORY}, memory)
