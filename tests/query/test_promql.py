# tests/query/test_promql.py

import pytest

from finkube.query import promql


def test_selector_quotes_and_orders_matchers():
    """Cluster id first, then exact labels, then regex matchers; quotes are escaped."""
    query = promql.selector("m", "c'1", match={"workload_type": "a|b"}, resource="cpu")
    assert query == "m{cluster_id='c\\'1',resource='cpu',workload_type=~'a|b'}"
    assert promql.selector("m") == "m"


def test_sum_over_window_grouping():
    """Window sums are grouped by the requested labels."""
    assert (
        promql.nodes_billing_mode_cost("c1", 3600)
        == "sum(sum_over_time(finkube_node_total_hourly_cost{cluster_id='c1'}[3600s])) by (billing_mode)"
    )
    assert (
        promql.nodes_resource_total("c1", "cpu", 86400)
        == "sum(sum_over_time(finkube_node_resource_total{cluster_id='c1',resource='cpu'}[86400s]))"
    )


def test_pod_queries_group_by_pod_and_namespace():
    """Pod queries keep the labels forming the pod key."""
    assert promql.pod_resource_usage("c1", 900).endswith(" by (pod,namespace,resource)")
    assert promql.namespace_pod_samples("c1", 900).startswith("sum(count_over_time(finkube_pod_resource_cost")


def test_cluster_heartbeat_queries():
    """The heartbeat count keeps the identity labels; the last activity is a timestamp."""
    assert promql.cluster_active_samples("c1", 60) == "count_over_time(finkube_cluster_active{cluster_id='c1'}[60s])"
    assert promql.cluster_last_active("c1") == "max(timestamp(finkube_cluster_active{cluster_id='c1'}))"


@pytest.mark.parametrize(
    "aggregate_by,pattern",
    [("all", "daemonset|statefulset|deployment"), ("deployment", "deployment"), ("daemonset", "daemonset")],
)
def test_workload_queries_filter_by_type(aggregate_by, pattern):
    """Workload queries match workload types by regex."""
    assert promql.workload_type_pattern(aggregate_by) == pattern
    query = promql.workload_cost("c1", pattern, 3600)
    assert f"workload_type=~'{pattern}'" in query
    assert query.endswith(" by (namespace,workload_name,workload_type)")


def test_pod_is_not_a_workload_type():
    """Pods have their own queries, not a workload type pattern."""
    with pytest.raises(ValueError):
        promql.workload_type_pattern("pod")
