# src/finkube/api/schemas.py
"""
Pydantic response schemas for the API.
Keeps API-specific response shapes separate from internal domain models.
"""

from typing import List

from pydantic import BaseModel, Field

from ..models.cost import ClusterMetricsSummary, CostRecord


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str = Field(..., description="Health status of the API.")
    version: str = Field(..., description="Current application version.")


class VersionResponse(BaseModel):
    """Response schema for the version endpoint."""

    version: str = Field(..., description="Current application version.")


class ConfigResponse(BaseModel):
    """Non-sensitive configuration exposed by the API."""

    query_backend_endpoint: str
    query_backend_tenant: str
    metrics_sample_period_seconds: int
    log_level: str
    api_host: str
    api_port: int


class CostRecordList(BaseModel):
    """Records of one cluster, sorted by timestamp."""

    cluster_id: str
    step_seconds: int = Field(..., description="Evaluation step of the window the records were computed on.")
    items: List[CostRecord] = Field(default_factory=list)


class ClusterResourceMetricsList(BaseModel):
    """Cluster-wide resource totals at every step of a window."""

    cluster_id: str
    resource: str
    unit: str
    items: List[ClusterMetricsSummary] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    detail: str
    errors: List[str] = Field(default_factory=list)
