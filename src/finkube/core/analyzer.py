# src/finkube/core/analyzer.py
"""
Cost and utilisation query services of the analyzer.

Each service builds the dimensions of one view (cluster, namespace,
workload, pod), runs them through the QueryAggregator and converts the
raw window sums into hour-weighted or average values.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..metrics import names
from ..models.cost import (
    ClusterCostsSummary,
    ClusterMetricsSummary,
    ConnectionState,
    CostRecord,
    EntityKey,
    EntityKind,
    TimeWindow,
)
from ..models.pricing import BillingMode
from ..query import promql
from ..utils.units import (
    HOURS_PER_MONTH,
    HOUR_IN_SECONDS,
    MIN_STEP_SECONDS,
    accumulated_to_hours,
    average_count,
    samples_to_seconds,
    to_hourly_rate,
)
from .aggregator import Dimension, Labels, QueryAggregator
from .config import config

logger = logging.getLogger(__name__)

AGGREGATE_BY_OPTIONS = ("all", "pod", "deployment", "statefulset", "daemonset")
RESOURCE_UNITS = {names.RESOURCE_CPU: "core", names.RESOURCE_MEMORY: "gb"}
# A cluster whose last heartbeat is older than this is reported as disconnected.
CONNECTION_TIMEOUT_SECONDS = 180

BILLING_MODE_FIELDS = {
    BillingMode.ON_DEMAND.value: "cost_on_demand",
    BillingMode.SPOT.value: "cost_spot",
    BillingMode.FALLBACK.value: "cost_fallback",
    BillingMode.MONTHLY.value: "cost_period",
    BillingMode.YEARLY.value: "cost_period",
}


# --- Join keys ---


def cluster_key(cluster_id: str, labels: Labels) -> EntityKey:
    return EntityKey(kind=EntityKind.CLUSTER, cluster_id=cluster_id)


def namespace_key(cluster_id: str, labels: Labels) -> Optional[EntityKey]:
    namespace = labels.get(names.NAMESPACE)
    if not namespace:
        return None
    return EntityKey(kind=EntityKind.NAMESPACE, cluster_id=cluster_id, namespace=namespace)


def pod_entity_key(cluster_id: str, labels: Labels) -> Optional[EntityKey]:
    namespace, pod = labels.get(names.NAMESPACE), labels.get(names.POD)
    if not namespace or not pod:
        return None
    return EntityKey(kind=EntityKind.POD, cluster_id=cluster_id, namespace=namespace, name=pod)


def workload_key(cluster_id: str, labels: Labels) -> Optional[EntityKey]:
    namespace, name = labels.get(names.NAMESPACE), labels.get(names.WORKLOAD_NAME)
    if not namespace or not name:
        return None
    return EntityKey(
        kind=EntityKind.WORKLOAD,
        cluster_id=cluster_id,
        namespace=namespace,
        workload_type=labels.get(names.WORKLOAD_TYPE, ""),
        name=name,
    )


# --- Field selectors ---


def by_resource(cpu_field: str, ram_field: str) -> Callable[[Labels], Optional[str]]:
    """Routes a series to `cpu_field` or `ram_field` by its `resource` label."""
    fields = {names.RESOURCE_CPU: cpu_field, names.RESOURCE_MEMORY: ram_field}

    def select(labels: Labels) -> Optional[str]:
        return fields.get(labels.get(names.RESOURCE))

    return select


def by_billing_mode(labels: Labels) -> Optional[str]:
    field = BILLING_MODE_FIELDS.get(labels.get(names.BILLING_MODE))
    if field is None:
        logger.error(f"Billing mode {labels.get(names.BILLING_MODE)} not supported yet")
    return field


class CostAnalyzer:
    """
    Query services over one metrics backend.

    `sample_period_seconds` must match the scrape interval of the agent
    gauges; it turns window sums back into hours and averages.
    """

    def __init__(self, aggregator: QueryAggregator, sample_period_seconds: int = None):
        self.aggregator = aggregator
        self.sample_period_seconds = sample_period_seconds or config.METRICS_SAMPLE_PERIOD_SECONDS

    # --- Normalisers ---

    def _to_hours(self, value: float) -> float:
        return accumulated_to_hours(value, self.sample_period_seconds)

    def _average(self, step_seconds: int) -> Callable[[float], float]:
        """Average cores/GiB over a step from the window sum of a gauge."""
        return lambda value: to_hourly_rate(self._to_hours(value), step_seconds)

    def _average_count(self, step_seconds: int) -> Callable[[float], float]:
        return lambda value: average_count(value, step_seconds, self.sample_period_seconds)

    # --- Range views ---

    async def cluster_resource_costs(
        self, tenant: Optional[str], cluster_id: str, window: TimeWindow
    ) -> List[CostRecord]:
        """Cost of the cluster per step, split by billing mode and resource, with core and GiB hours."""
        step = window.step_seconds
        average = self._average(step)
        dimensions = [
            Dimension(
                "total cost", promql.nodes_total_cost(cluster_id, step), cluster_key, "total_cost", self._to_hours
            ),
            Dimension(
                "billing mode cost",
                promql.nodes_billing_mode_cost(cluster_id, step),
                cluster_key,
                by_billing_mode,
                self._to_hours,
            ),
            Dimension(
                "resource cost",
                promql.nodes_resource_cost(cluster_id, step),
                cluster_key,
                by_resource("cpu_cost", "ram_cost"),
                self._to_hours,
            ),
            Dimension(
                "cpu total",
                promql.nodes_resource_total(cluster_id, names.RESOURCE_CPU, step),
                cluster_key,
                "cpu_core_count",
                average,
            ),
            Dimension(
                "cpu usage",
                promql.nodes_resource_usage(cluster_id, names.RESOURCE_CPU, step),
                cluster_key,
                "cpu_core_usage",
                average,
            ),
            Dimension(
                "memory total",
                promql.nodes_resource_total(cluster_id, names.RESOURCE_MEMORY, step),
                cluster_key,
                "ram_gib_count",
                average,
            ),
            Dimension(
                "memory usage",
                promql.nodes_resource_usage(cluster_id, names.RESOURCE_MEMORY, step),
                cluster_key,
                "ram_gib_usage",
                average,
            ),
        ]
        return await self.aggregator.aggregate(tenant, cluster_id, window, dimensions)

    async def namespace_costs(self, tenant: Optional[str], cluster_id: str, window: TimeWindow) -> List[CostRecord]:
        step = window.step_seconds
        average = self._average(step)
        dimensions = [
            Dimension(
                "namespace cost", promql.namespace_cost(cluster_id, step), namespace_key, "total_cost", self._to_hours
            ),
            Dimension(
                "namespace pods",
                promql.namespace_pod_samples(cluster_id, step),
                namespace_key,
                "pod_count",
                self._average_count(step),
            ),
            Dimension(
                "namespace request",
                promql.namespace_resource_request(cluster_id, step),
                namespace_key,
                by_resource("cpu_request", "ram_request"),
                average,
            ),
            Dimension(
                "namespace usage",
                promql.namespace_resource_usage(cluster_id, step),
                namespace_key,
                by_resource("cpu_core_usage", "ram_gib_usage"),
                average,
            ),
        ]
        return await self.aggregator.aggregate(tenant, cluster_id, window, dimensions)

    async def workload_costs(
        self, tenant: Optional[str], cluster_id: str, window: TimeWindow, aggregate_by: str = "all"
    ) -> List[CostRecord]:
        """
        Cost of pods and/or workloads per step.

        `aggregate_by` is `pod` (pods only), one workload type (that type
        only) or `all` (pods and every workload type).

        Raises:
            ValueError: For an unknown `aggregate_by`.
        """
        if aggregate_by not in AGGREGATE_BY_OPTIONS:
            raise ValueError(f"aggregate_by must be one of {', '.join(AGGREGATE_BY_OPTIONS)}, got '{aggregate_by}'")

        step = window.step_seconds
        average = self._average(step)
        dimensions: List[Dimension] = []
        if aggregate_by in ("pod", "all"):
            dimensions += [
                Dimension("pod cost", promql.pod_cost(cluster_id, step), pod_entity_key, "total_cost", self._to_hours),
                Dimension(
                    "pod request",
                    promql.pod_resource_request(cluster_id, step),
                    pod_entity_key,
                    by_resource("cpu_request", "ram_request"),
                    average,
                ),
                Dimension(
                    "pod usage",
                    promql.pod_resource_usage(cluster_id, step),
                    pod_entity_key,
                    by_resource("cpu_core_usage", "ram_gib_usage"),
                    average,
                ),
            ]
        if aggregate_by != "pod":
            pattern = promql.workload_type_pattern(aggregate_by)
            dimensions += [
                Dimension(
                    "workload cost",
                    promql.workload_cost(cluster_id, pattern, step),
                    workload_key,
                    "total_cost",
                    self._to_hours,
                ),
                Dimension(
                    "workload pods",
                    promql.workload_pod_count(cluster_id, pattern, step),
                    workload_key,
                    "pod_count",
                    self._average_count(step),
                ),
                Dimension(
                    "workload request",
                    promql.workload_resource_request(cluster_id, pattern, step),
                    workload_key,
                    by_resource("cpu_request", "ram_request"),
                    average,
                ),
                Dimension(
                    "workload usage",
                    promql.workload_resource_usage(cluster_id, pattern, step),
                    workload_key,
                    by_resource("cpu_core_usage", "ram_gib_usage"),
                    average,
                ),
            ]

        records = await self.aggregator.aggregate(tenant, cluster_id, window, dimensions)
        for record in records:
            if record.key.kind == EntityKind.POD:
                record.pod_count = 1.0
        return records

    async def cluster_resource_metrics(
        self, tenant: Optional[str], cluster_id: str, window: TimeWindow, resource: str
    ) -> List[ClusterMetricsSummary]:
        """
        Cluster-wide total, available, system-taken, requested and used
        amount of one resource at every step of the window.

        Raises:
            ValueError: For a resource other than cpu or memory.
            DataInconsistencyError: If a query does not match exactly one series.
        """
        unit = self._unit(resource)
        dimensions = [
            Dimension(
                field, promql.sum_now(metric, cluster_id, resource=resource), cluster_key, field, single_valued=True
            )
            for field, metric in promql.CLUSTER_SUMMARY_METRICS.items()
        ]
        results = await self.aggregator.fan_out(tenant, window, dimensions)
        rows = self.aggregator.join(cluster_id, dimensions, results)
        summaries = [
            ClusterMetricsSummary(resource=resource, unit=unit, timestamp=timestamp, **fields)
            for (_, timestamp), fields in rows.items()
        ]
        summaries.sort(key=lambda summary: summary.timestamp)
        return summaries

    # --- Current views ---

    async def cluster_metrics_summary(
        self, tenant: Optional[str], cluster_id: str, resource: str
    ) -> ClusterMetricsSummary:
        """
        Current cluster-wide totals of one resource.

        Raises:
            ValueError: For a resource other than cpu or memory.
            DataInconsistencyError: If a query does not match exactly one series.
        """
        unit = self._unit(resource)
        now = datetime.now(timezone.utc)
        window = TimeWindow(start=now, end=now, step_seconds=MIN_STEP_SECONDS)
        dimensions = [
            Dimension(
                field,
                promql.sum_now(metric, cluster_id, resource=resource),
                cluster_key,
                field,
                instant=True,
                single_valued=True,
            )
            for field, metric in promql.CLUSTER_SUMMARY_METRICS.items()
        ]
        results = await self.aggregator.fan_out(tenant, window, dimensions)
        values: Dict[str, float] = {}
        for dimension, series_list in zip(dimensions, results):
            self.aggregator.check_single_valued(dimension, series_list)
            values[dimension.field] = _first_value(series_list)
        return ClusterMetricsSummary(resource=resource, unit=unit, **values)

    async def cluster_costs_summary(
        self, tenant: Optional[str], cluster_id: str, now: Optional[datetime] = None
    ) -> ClusterCostsSummary:
        """
        Month-to-date cost of the cluster and its projections.

        The monthly estimate and daily average scale the cost by the time
        the cluster actually reported during the month.

        Raises:
            AggregateError: If any query failed.
            DataInconsistencyError: If the cluster has no heartbeat this month.
        """
        window = TimeWindow.current_month(now)
        span = max(window.duration_seconds, MIN_STEP_SECONDS)
        dimensions = [
            Dimension(
                "active samples",
                promql.cluster_active_samples(cluster_id, span),
                cluster_key,
                "active_seconds",
                instant=True,
                single_valued=True,
            ),
            Dimension("last active", promql.cluster_last_active(cluster_id), cluster_key, "last_active", instant=True),
            Dimension("month cost", promql.nodes_total_cost(cluster_id, span), cluster_key, "cost", instant=True),
            Dimension("cpu cost", promql.nodes_cpu_cost(cluster_id, span), cluster_key, "cpu_cost", instant=True),
            Dimension(
                "cpu core hours",
                promql.nodes_resource_total(cluster_id, names.RESOURCE_CPU, span),
                cluster_key,
                "cpu_hours",
                instant=True,
            ),
        ]
        active, last_active, month_cost, cpu_cost, cpu_hours = await self.aggregator.fan_out(tenant, window, dimensions)
        self.aggregator.check_single_valued(dimensions[0], active)

        identity = active[0].labels
        active_seconds = samples_to_seconds(_first_value(active), self.sample_period_seconds)
        current_cost = self._to_hours(_first_value(month_cost))
        core_hours = self._to_hours(_first_value(cpu_hours))
        active_hours = active_seconds / HOUR_IN_SECONDS

        last_active_time = int(_first_value(last_active)) if last_active else None
        state = ConnectionState.CONNECT_FAILED
        if last_active_time is not None and window.end_ts - last_active_time <= CONNECTION_TIMEOUT_SECONDS:
            state = ConnectionState.RUNNING

        return ClusterCostsSummary(
            cluster_id=cluster_id,
            cluster_name=identity.get(names.CLUSTER_NAME, ""),
            cloud_provider=identity.get(names.CLOUD_PROVIDER, ""),
            region=identity.get(names.REGION, ""),
            connection_state=state,
            last_active_time=last_active_time,
            active_seconds=active_seconds,
            current_month_cost=current_cost,
            estimated_month_cost=HOURS_PER_MONTH * current_cost / active_hours if active_hours else 0.0,
            average_daily_cost=24 * current_cost / active_hours if active_hours else 0.0,
            average_hourly_core_cost=self._to_hours(_first_value(cpu_cost)) / core_hours if core_hours else 0.0,
        )

    @staticmethod
    def _unit(resource: str) -> str:
        try:
            return RESOURCE_UNITS[resource]
        except KeyError:
            raise ValueError(f"resource must be cpu or memory, got '{resource}'") from None


def _first_value(series_list) -> float:
    """Value of the only sample of an instant result; 0 when the result is empty."""
    if not series_list or not series_list[0].points:
        return 0.0
    return series_list[0].points[0][1]
