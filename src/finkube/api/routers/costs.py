# src/finkube/api/routers/costs.py
"""
API routes for cluster, namespace and workload costs.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.analyzer import CostAnalyzer
from ...models.cost import ClusterCostsSummary, TimeWindow
from ..dependencies import get_analyzer, get_tenant, get_time_window
from ..schemas import CostRecordList

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/clusters/{cluster_id}/costs/summary", response_model=ClusterCostsSummary)
async def cluster_costs_summary(
    cluster_id: str,
    tenant: Optional[str] = Depends(get_tenant),
    analyzer: CostAnalyzer = Depends(get_analyzer),
):
    """Month-to-date cost of the cluster with monthly and daily projections."""
    return await analyzer.cluster_costs_summary(tenant, cluster_id)


@router.get("/clusters/{cluster_id}/costs/resource", response_model=CostRecordList)
async def cluster_resource_costs(
    cluster_id: str,
    window: TimeWindow = Depends(get_time_window),
    tenant: Optional[str] = Depends(get_tenant),
    analyzer: CostAnalyzer = Depends(get_analyzer),
):
    """Cluster cost per step, split by billing mode and resource."""
    items = await analyzer.cluster_resource_costs(tenant, cluster_id, window)
    return CostRecordList(cluster_id=cluster_id, step_seconds=window.step_seconds, items=items)


@router.get("/clusters/{cluster_id}/costs/namespace", response_model=CostRecordList)
async def namespace_costs(
    cluster_id: str,
    window: TimeWindow = Depends(get_time_window),
    tenant: Optional[str] = Depends(get_tenant),
    analyzer: CostAnalyzer = Depends(get_analyzer),
):
    """Cost, pod count, requests and usage per namespace and step."""
    items = await analyzer.namespace_costs(tenant, cluster_id, window)
    return CostRecordList(cluster_id=cluster_id, step_seconds=window.step_seconds, items=items)


@router.get("/clusters/{cluster_id}/costs/workload", response_model=CostRecordList)
async def workload_costs(
    cluster_id: str,
    aggregate_by: str = Query("all", description="One of all, pod, deployment, statefulset, daemonset."),
    window: TimeWindow = Depends(get_time_window),
    tenant: Optional[str] = Depends(get_tenant),
    analyzer: CostAnalyzer = Depends(get_analyzer),
):
    """Cost, requests and usage per pod and/or workload and step."""
    items = await analyzer.workload_costs(tenant, cluster_id, window, aggregate_by=aggregate_by)
    return CostRecordList(cluster_id=cluster_id, step_seconds=window.step_seconds, items=items)
