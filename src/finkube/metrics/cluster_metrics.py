# src/finkube/metrics/cluster_metrics.py

import logging

from . import names
from .base import BaseMetricsEmitter

logger = logging.getLogger(__name__)


class ClusterMetricsEmitter(BaseMetricsEmitter):
    """Heartbeat of the cluster, labelled with its region and provider."""

    name = "cluster"

    async def collect(self) -> None:
        nodes = await self.state.nodes.collect()
        if not nodes:
            logger.warning("No nodes found, skipping the cluster heartbeat.")
            return

        prices = await self.price_nodes(nodes[:1])
        price = prices.get(nodes[0].metadata.name)
        if price is None:
            return

        batch = self.sink.batch((names.CLUSTER_ACTIVE,))
        batch.set(
            names.CLUSTER_ACTIVE,
            {names.REGION: price.region, names.CLOUD_PROVIDER: price.cloud_provider, **self.cluster_labels},
            1,
        )
        batch.commit()
