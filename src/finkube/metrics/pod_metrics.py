# src/finkube/metrics/pod_metrics.py

import logging

from ..collectors.pod_collector import parse_pod_requests
from ..utils.k8s_utils import pod_key, pod_node_name
from . import names
from .base import BaseMetricsEmitter, labels_json

logger = logging.getLogger(__name__)


class PodMetricsEmitter(BaseMetricsEmitter):
    """Pod level cost plus per-container request and usage."""

    name = "pod"

    async def collect(self) -> None:
        pods = await self.state.pods.collect()
        nodes = await self.state.nodes.collect()
        prices = await self.price_nodes(nodes)
        costs = self.pod_costs(pods, prices)
        usage = await self.pod_usage()

        metric_names = (names.POD_RESOURCE_COST, names.POD_RESOURCE_REQUEST)
        if usage is not None:
            metric_names += (names.POD_RESOURCE_USAGE,)
        batch = self.sink.batch(metric_names)

        for pod in pods:
            key = pod_key(pod)
            base_labels = {
                names.NAMESPACE: pod.metadata.namespace,
                names.POD: pod.metadata.name,
                names.LABELS: labels_json(pod.metadata.labels),
                **self.cluster_labels,
            }

            if key in costs:
                cost_labels = {
                    **base_labels,
                    names.RESOURCE: names.RESOURCE_COST,
                    names.SCHEDULED: "true" if pod_node_name(pod) else "false",
                }
                batch.set(names.POD_RESOURCE_COST, cost_labels, costs[key])

            try:
                requests = parse_pod_requests(pod)
            except ValueError as e:
                logger.warning(f"Skipping requests of pod {key}: {e}")
                requests = {}
            for container, request in requests.items():
                container_labels = {**base_labels, names.CONTAINER: container}
                batch.set(
                    names.POD_RESOURCE_REQUEST,
                    {**container_labels, names.RESOURCE: names.RESOURCE_CPU},
                    request.cpu_cores,
                )
                batch.set(
                    names.POD_RESOURCE_REQUEST,
                    {**container_labels, names.RESOURCE: names.RESOURCE_MEMORY},
                    request.memory_gib,
                )

            if usage is None:
                continue
            for container, used in usage.get((pod.metadata.namespace, pod.metadata.name), {}).items():
                container_labels = {**base_labels, names.CONTAINER: container}
                batch.set(
                    names.POD_RESOURCE_USAGE, {**container_labels, names.RESOURCE: names.RESOURCE_CPU}, used.cpu_cores
                )
                batch.set(
                    names.POD_RESOURCE_USAGE,
                    {**container_labels, names.RESOURCE: names.RESOURCE_MEMORY},
                    used.memory_gib,
                )

        batch.commit()
        logger.debug(f"Emitted pod metrics for {len(pods)} pods.")
