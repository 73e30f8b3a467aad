# src/finkube/api/routers/metrics.py
"""
API routes for cluster resource metrics.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.analyzer import RESOURCE_UNITS, CostAnalyzer
from ...models.cost import ClusterMetricsSummary, TimeWindow
from ..dependencies import get_analyzer, get_tenant, get_time_window
from ..schemas import ClusterResourceMetricsList

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/clusters/{cluster_id}/metrics/summary", response_model=ClusterMetricsSummary)
async def cluster_metrics_summary(
    cluster_id: str,
    resource: str = Query("cpu", description="cpu or memory."),
    tenant: Optional[str] = Depends(get_tenant),
    analyzer: CostAnalyzer = Depends(get_analyzer),
):
    """Current total, available, system-taken, requested and used amount of a resource."""
    return await analyzer.cluster_metrics_summary(tenant, cluster_id, resource)


@router.get("/clusters/{cluster_id}/metrics/resource", response_model=ClusterResourceMetricsList)
async def cluster_resource_metrics(
    cluster_id: str,
    resource: str = Query("cpu", description="cpu or memory."),
    window: TimeWindow = Depends(get_time_window),
    tenant: Optional[str] = Depends(get_tenant),
    analyzer: CostAnalyzer = Depends(get_analyzer),
):
    """The same totals as the summary, at every step of the window."""
    items = await analyzer.cluster_resource_metrics(tenant, cluster_id, window, resource)
    return ClusterResourceMetricsList(
        cluster_id=cluster_id, resource=resource, unit=RESOURCE_UNITS.get(resource, ""), items=items
    )
