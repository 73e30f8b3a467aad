# src/finkube/query/promql.py
"""
PromQL builders for the analyzer.

Range-window queries return raw `sum_over_time` / `count_over_time` values;
conversion to hours, rates and averages happens in Python through
`finkube.utils.units` so the sample period is not baked into the queries.
"""

from typing import Dict, Optional

from ..metrics import names

WORKLOAD_TYPE_PATTERNS = {
    "all": "daemonset|statefulset|deployment",
    "deployment": "deployment",
    "statefulset": "statefulset",
    "daemonset": "daemonset",
}


def _quote(value: str) -> str:
    return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"


def selector(metric: str, cluster_id: Optional[str] = None, match: Optional[Dict[str, str]] = None, **labels) -> str:
    """Builds `metric{k='v',...}`; `match` holds regex matchers (`=~`)."""
    parts = []
    if cluster_id is not None:
        parts.append(f"{names.CLUSTER_ID}={_quote(cluster_id)}")
    parts.extend(f"{key}={_quote(value)}" for key, value in labels.items())
    if match:
        parts.extend(f"{key}=~{_quote(value)}" for key, value in match.items())
    if not parts:
        return metric
    return f"{metric}{{{','.join(parts)}}}"


def _by(*labels: str) -> str:
    return f" by ({','.join(labels)})" if labels else ""


def sum_now(metric: str, cluster_id: str, **labels) -> str:
    """Current sum of a gauge, e.g. total allocatable cores of a cluster."""
    return f"sum({selector(metric, cluster_id, **labels)})"


def sum_over_window(metric: str, cluster_id: str, window_seconds: int, by=(), match=None, **labels) -> str:
    """`sum(sum_over_time(...[window]))`, optionally grouped."""
    inner = f"sum_over_time({selector(metric, cluster_id, match=match, **labels)}[{int(window_seconds)}s])"
    return f"sum({inner}){_by(*by)}"


def count_over_window(metric: str, cluster_id: str, window_seconds: int, by=(), **labels) -> str:
    inner = f"count_over_time({selector(metric, cluster_id, **labels)}[{int(window_seconds)}s])"
    return f"sum({inner}){_by(*by)}"


# --- Cluster ---


def cluster_active_samples(cluster_id: str, window_seconds: int) -> str:
    """Heartbeat samples in the window; keeps the identity labels of the series."""
    return f"count_over_time({selector(names.CLUSTER_ACTIVE, cluster_id)}[{int(window_seconds)}s])"


def cluster_last_active(cluster_id: str) -> str:
    return f"max(timestamp({selector(names.CLUSTER_ACTIVE, cluster_id)}))"


def nodes_total_cost(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.NODE_TOTAL_HOURLY_COST, cluster_id, window_seconds)


def nodes_billing_mode_cost(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.NODE_TOTAL_HOURLY_COST, cluster_id, window_seconds, by=(names.BILLING_MODE,))


def nodes_resource_cost(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.NODE_RESOURCE_HOURLY_COST, cluster_id, window_seconds, by=(names.RESOURCE,))


def nodes_cpu_cost(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.NODE_RESOURCE_HOURLY_COST, cluster_id, window_seconds, resource=names.RESOURCE_CPU)


def nodes_resource_total(cluster_id: str, resource: str, window_seconds: int) -> str:
    return sum_over_window(names.NODE_RESOURCE_TOTAL, cluster_id, window_seconds, resource=resource)


def nodes_resource_usage(cluster_id: str, resource: str, window_seconds: int) -> str:
    return sum_over_window(names.NODE_RESOURCE_USAGE, cluster_id, window_seconds, resource=resource)


# --- Cluster, current values ---

CLUSTER_SUMMARY_METRICS = {
    "total": names.NODE_RESOURCE_TOTAL,
    "available": names.NODE_RESOURCE_AVAILABLE,
    "system_taken": names.NODE_RESOURCE_SYSTEM_TAKEN,
    "request": names.POD_RESOURCE_REQUEST,
    "usage": names.NODE_RESOURCE_USAGE,
}


# --- Namespaces ---


def namespace_cost(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.POD_RESOURCE_COST, cluster_id, window_seconds, by=(names.NAMESPACE,))


def namespace_pod_samples(cluster_id: str, window_seconds: int) -> str:
    return count_over_window(names.POD_RESOURCE_COST, cluster_id, window_seconds, by=(names.NAMESPACE,))


def namespace_resource_request(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.POD_RESOURCE_REQUEST, cluster_id, window_seconds, by=(names.NAMESPACE, names.RESOURCE))


def namespace_resource_usage(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.POD_RESOURCE_USAGE, cluster_id, window_seconds, by=(names.NAMESPACE, names.RESOURCE))


# --- Pods ---

_POD_KEY = (names.POD, names.NAMESPACE)


def pod_cost(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.POD_RESOURCE_COST, cluster_id, window_seconds, by=_POD_KEY)


def pod_resource_request(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.POD_RESOURCE_REQUEST, cluster_id, window_seconds, by=(*_POD_KEY, names.RESOURCE))


def pod_resource_usage(cluster_id: str, window_seconds: int) -> str:
    return sum_over_window(names.POD_RESOURCE_USAGE, cluster_id, window_seconds, by=(*_POD_KEY, names.RESOURCE))


# --- Workloads ---

_WORKLOAD_KEY = (names.NAMESPACE, names.WORKLOAD_NAME, names.WORKLOAD_TYPE)


def workload_type_pattern(aggregate_by: str) -> str:
    """Regex over `workload_type` for an aggregation level other than `pod`."""
    try:
        return WORKLOAD_TYPE_PATTERNS[aggregate_by]
    except KeyError:
        raise ValueError(f"Unsupported workload aggregation '{aggregate_by}'") from None


def workload_cost(cluster_id: str, pattern: str, window_seconds: int) -> str:
    return sum_over_window(
        names.WORKLOAD_RESOURCE_COST, cluster_id, window_seconds, by=_WORKLOAD_KEY, match={names.WORKLOAD_TYPE: pattern}
    )


def workload_pod_count(cluster_id: str, pattern: str, window_seconds: int) -> str:
    return sum_over_window(
        names.WORKLOAD_POD_COUNT, cluster_id, window_seconds, by=_WORKLOAD_KEY, match={names.WORKLOAD_TYPE: pattern}
    )


def workload_resource_request(cluster_id: str, pattern: str, window_seconds: int) -> str:
    return sum_over_window(
        names.WORKLOAD_RESOURCE_REQUEST,
        cluster_id,
        window_seconds,
        by=(*_WORKLOAD_KEY, names.RESOURCE),
        match={names.WORKLOAD_TYPE: pattern},
    )


def workload_resource_usage(cluster_id: str, pattern: str, window_seconds: int) -> str:
    return sum_over_window(
        names.WORKLOAD_RESOURCE_USAGE,
        cluster_id,
        window_seconds,
        by=(*_WORKLOAD_KEY, names.RESOURCE),
        match={names.WORKLOAD_TYPE: pattern},
    )
