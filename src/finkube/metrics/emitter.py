# src/finkube/metrics/emitter.py
"""
Runs the four metric loops (cluster, node, pod, workload) of the agent.
"""

import logging
from typing import List, Optional

from ..cloudprice.base import CloudPriceProvider
from ..core.config import config
from ..core.scheduler import Scheduler
from ..core.tracker import NodeResourceTracker
from ..models.pricing import ClusterInfo
from .base import BaseMetricsEmitter, ClusterState
from .cluster_metrics import ClusterMetricsEmitter
from .node_metrics import NodeMetricsEmitter
from .pod_metrics import PodMetricsEmitter
from .sink import MetricsSink
from .workload_metrics import WorkloadMetricsEmitter

logger = logging.getLogger(__name__)


class MetricsEmitter:
    """
    Owns one independent periodic loop per entity dimension.

    Loops share nothing but the sink, the price provider and the tracker;
    a failing tick is logged by the scheduler and the next tick runs as usual.
    """

    def __init__(
        self,
        sink: MetricsSink,
        provider: CloudPriceProvider,
        tracker: NodeResourceTracker,
        cluster: ClusterInfo,
        state: Optional[ClusterState] = None,
        interval_seconds: float = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.interval_seconds = interval_seconds or config.SCRAPE_INTERVAL_SECONDS
        self.scheduler = scheduler or Scheduler()
        self.state = state or ClusterState()
        self.emitters: List[BaseMetricsEmitter] = [
            ClusterMetricsEmitter(sink, provider, self.state, cluster),
            NodeMetricsEmitter(sink, provider, self.state, cluster, tracker),
            PodMetricsEmitter(sink, provider, self.state, cluster),
            WorkloadMetricsEmitter(sink, provider, self.state, cluster),
        ]

    def start(self) -> None:
        logger.info(f"Start collecting metrics every {self.interval_seconds}s.")
        for emitter in self.emitters:
            self.scheduler.add_job(emitter.collect, self.interval_seconds, name=f"{emitter.name}-metrics")

    async def stop(self) -> None:
        """Stops the loops, then closes the collectors they read from."""
        await self.scheduler.stop()
        await self.state.close()
        logger.info("Stopped collecting metrics.")
