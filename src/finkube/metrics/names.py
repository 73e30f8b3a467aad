# src/finkube/metrics/names.py
"""
Metric names and their fixed label schemas.

Every gauge written by the agent is declared here. The query side builds
its PromQL from the same names, so the two halves cannot drift apart.
"""

from typing import Dict, Tuple

# --- Label keys ---
CLUSTER_NAME = "cluster_name"
CLUSTER_ID = "cluster_id"
NAMESPACE = "namespace"
LABELS = "labels"
RESOURCE = "resource"
BILLING_MODE = "billing_mode"
NODE = "node"
CONTAINER = "container"
WORKLOAD_TYPE = "workload_type"
WORKLOAD_NAME = "workload_name"
INSTANCE_TYPE = "instance_type"
BILLING_PERIOD = "billing_period"
REGION = "region"
CLOUD_PROVIDER = "cloud_provider"
POD = "pod"
SCHEDULED = "scheduled"

# --- Resource label values ---
RESOURCE_CPU = "cpu"
RESOURCE_MEMORY = "memory"
RESOURCE_COST = "cost"
RESOURCE_POD = "pod"

# --- Cluster level ---
CLUSTER_ACTIVE = "finkube_cluster_active"

# --- Node level ---
NODE_CPU_CORE_HOURLY_COST = "finkube_node_cpu_core_hourly_cost"
NODE_RAM_GB_HOURLY_COST = "finkube_node_ram_gb_hourly_cost"
NODE_TOTAL_HOURLY_COST = "finkube_node_total_hourly_cost"
NODE_RESOURCE_HOURLY_COST = "finkube_node_resource_hourly_cost"
NODE_RESOURCE_TOTAL = "finkube_node_resource_total"
NODE_RESOURCE_USAGE = "finkube_node_resource_usage"
NODE_RESOURCE_AVAILABLE = "finkube_node_resource_available"
NODE_RESOURCE_SYSTEM_TAKEN = "finkube_node_resource_system_taken"

# --- Pod level ---
POD_RESOURCE_COST = "finkube_pod_resource_cost"
POD_RESOURCE_REQUEST = "finkube_pod_resource_request"
POD_RESOURCE_USAGE = "finkube_pod_resource_usage"

# --- Workload level ---
WORKLOAD_RESOURCE_COST = "finkube_workload_resource_cost"
WORKLOAD_POD_COUNT = "finkube_workload_pod_count"
WORKLOAD_RESOURCE_REQUEST = "finkube_workload_resource_request"
WORKLOAD_RESOURCE_USAGE = "finkube_workload_resource_usage"

_NODE_COST_LABELS = (
    NODE,
    INSTANCE_TYPE,
    BILLING_MODE,
    BILLING_PERIOD,
    REGION,
    CLOUD_PROVIDER,
    CLUSTER_NAME,
    CLUSTER_ID,
)
_NODE_RESOURCE_LABELS = (NODE, CLUSTER_NAME, CLUSTER_ID, RESOURCE, BILLING_MODE)
_POD_CONTAINER_LABELS = (NAMESPACE, POD, CLUSTER_NAME, CLUSTER_ID, RESOURCE, LABELS, CONTAINER)
_WORKLOAD_LABELS = (WORKLOAD_TYPE, WORKLOAD_NAME, NAMESPACE, CLUSTER_NAME, CLUSTER_ID, LABELS, RESOURCE)

# name -> (help text, label names)
METRIC_SCHEMAS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    CLUSTER_ACTIVE: ("Whether the cluster agent is alive", (REGION, CLOUD_PROVIDER, CLUSTER_NAME, CLUSTER_ID)),
    NODE_CPU_CORE_HOURLY_COST: ("The hourly cost of one CPU core of the node", _NODE_COST_LABELS),
    NODE_RAM_GB_HOURLY_COST: ("The hourly cost of one GiB of memory of the node", _NODE_COST_LABELS),
    NODE_TOTAL_HOURLY_COST: ("The total hourly cost of the node", _NODE_COST_LABELS),
    NODE_RESOURCE_HOURLY_COST: ("The hourly cost of all cores/GiB of the node", _NODE_COST_LABELS + (RESOURCE,)),
    NODE_RESOURCE_TOTAL: ("The total resource of the node, including system reserved", _NODE_RESOURCE_LABELS),
    NODE_RESOURCE_USAGE: ("The resource usage of the node", _NODE_RESOURCE_LABELS),
    NODE_RESOURCE_AVAILABLE: ("The allocatable resource of the node not yet requested", _NODE_RESOURCE_LABELS),
    NODE_RESOURCE_SYSTEM_TAKEN: ("The resource of the node taken by the OS and kubelet", _NODE_RESOURCE_LABELS),
    POD_RESOURCE_COST: (
        "The hourly cost of the pod",
        (NAMESPACE, POD, CLUSTER_NAME, CLUSTER_ID, RESOURCE, SCHEDULED, LABELS),
    ),
    POD_RESOURCE_REQUEST: ("The resource requested by a pod container", _POD_CONTAINER_LABELS),
    POD_RESOURCE_USAGE: ("The resource used by a pod container", _POD_CONTAINER_LABELS),
    WORKLOAD_RESOURCE_COST: ("The hourly cost of the workload", _WORKLOAD_LABELS),
    WORKLOAD_POD_COUNT: ("The number of pods of the workload", _WORKLOAD_LABELS),
    WORKLOAD_RESOURCE_REQUEST: (
        "The resource requested by the workload per container",
        _WORKLOAD_LABELS + (CONTAINER,),
    ),
    WORKLOAD_RESOURCE_USAGE: ("The resource used by the workload per container", _WORKLOAD_LABELS + (CONTAINER,)),
}
