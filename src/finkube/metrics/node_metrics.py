# src/finkube/metrics/node_metrics.py

import logging
from decimal import Decimal

from ..core.exceptions import UpstreamQueryError
from ..core.tracker import NodeResourceTracker
from ..utils.units import bytes_to_gib
from . import names
from .base import BaseMetricsEmitter

logger = logging.getLogger(__name__)

COST_METRICS = (
    names.NODE_CPU_CORE_HOURLY_COST,
    names.NODE_RAM_GB_HOURLY_COST,
    names.NODE_TOTAL_HOURLY_COST,
    names.NODE_RESOURCE_HOURLY_COST,
)
RESOURCE_METRICS = (
    names.NODE_RESOURCE_TOTAL,
    names.NODE_RESOURCE_AVAILABLE,
    names.NODE_RESOURCE_SYSTEM_TAKEN,
)


class NodeMetricsEmitter(BaseMetricsEmitter):
    """
    Node level costs and capacity.

    Capacity totals come from the price (catalog spec or padded capacity),
    allocatable and requested from the resource tracker, usage from
    metrics-server.
    """

    name = "node"

    def __init__(self, sink, provider, state, cluster, tracker: NodeResourceTracker):
        super().__init__(sink, provider, state, cluster)
        self.tracker = tracker

    async def collect(self) -> None:
        nodes = await self.state.nodes.collect()
        prices = await self.price_nodes(nodes)
        records = await self.tracker.snapshot()

        try:
            usage = await self.state.usage.collect_node_usage()
        except UpstreamQueryError as e:
            logger.warning(f"List all node metrics error: {e}")
            usage = None

        metric_names = COST_METRICS + RESOURCE_METRICS
        if usage is not None:
            metric_names += (names.NODE_RESOURCE_USAGE,)
        batch = self.sink.batch(metric_names)

        for node_name, price in prices.items():
            cost_labels = {
                names.NODE: node_name,
                names.INSTANCE_TYPE: price.instance_type,
                names.BILLING_MODE: price.billing_mode.value,
                names.BILLING_PERIOD: str(price.billing_period),
                names.REGION: price.region,
                names.CLOUD_PROVIDER: price.cloud_provider,
                **self.cluster_labels,
            }
            batch.set(names.NODE_CPU_CORE_HOURLY_COST, cost_labels, price.cpu_hourly)
            batch.set(names.NODE_RAM_GB_HOURLY_COST, cost_labels, price.ram_hourly)
            batch.set(names.NODE_TOTAL_HOURLY_COST, cost_labels, price.total_hourly)
            batch.set(
                names.NODE_RESOURCE_HOURLY_COST,
                {**cost_labels, names.RESOURCE: names.RESOURCE_CPU},
                price.cpu_hourly * price.cpu_core_count,
            )
            batch.set(
                names.NODE_RESOURCE_HOURLY_COST,
                {**cost_labels, names.RESOURCE: names.RESOURCE_MEMORY},
                price.ram_hourly * price.ram_capacity_gib,
            )

            def resource_labels(resource: str) -> dict:
                return {
                    names.NODE: node_name,
                    names.RESOURCE: resource,
                    names.BILLING_MODE: price.billing_mode.value,
                    **self.cluster_labels,
                }

            cpu_labels = resource_labels(names.RESOURCE_CPU)
            memory_labels = resource_labels(names.RESOURCE_MEMORY)
            batch.set(names.NODE_RESOURCE_TOTAL, cpu_labels, price.cpu_core_count)
            batch.set(names.NODE_RESOURCE_TOTAL, memory_labels, price.ram_capacity_gib)

            record = records.get(node_name)
            if record is None:
                logger.debug(f"Node '{node_name}' is not tracked yet, skipping its allocation metrics.")
            else:
                cpu_capacity = Decimal(str(price.cpu_core_count))
                batch.set(names.NODE_RESOURCE_SYSTEM_TAKEN, cpu_labels, record.system_taken("cpu", cpu_capacity))
                batch.set(names.NODE_RESOURCE_AVAILABLE, cpu_labels, record.available("cpu"))

                allocatable_gib = bytes_to_gib(record.allocatable.get("memory", Decimal(0)))
                batch.set(names.NODE_RESOURCE_SYSTEM_TAKEN, memory_labels, price.ram_capacity_gib - allocatable_gib)
                batch.set(names.NODE_RESOURCE_AVAILABLE, memory_labels, bytes_to_gib(record.available("memory")))

            if usage is not None and node_name in usage:
                batch.set(names.NODE_RESOURCE_USAGE, cpu_labels, usage[node_name].cpu_cores)
                batch.set(names.NODE_RESOURCE_USAGE, memory_labels, usage[node_name].memory_gib)

        batch.commit()
        logger.debug(f"Emitted node metrics for {len(prices)}/{len(nodes)} nodes.")
