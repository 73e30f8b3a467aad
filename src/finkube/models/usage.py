# src/finkube/models/usage.py
"""
Pydantic models for the live resource data read by the agent collectors.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class ContainerRequests(BaseModel):
    """Requests declared by one container."""

    cpu_cores: float = Field(0.0, ge=0, description="CPU request in cores")
    memory_gib: float = Field(0.0, ge=0, description="Memory request in GiB")


class ResourceUsage(BaseModel):
    """Usage reported by metrics-server for a node or a container."""

    cpu_cores: float = Field(0.0, ge=0, description="CPU usage in cores")
    memory_gib: float = Field(0.0, ge=0, description="Memory usage in GiB")


class Workload(BaseModel):
    """
    A pod controller (DaemonSet, StatefulSet or Deployment).

    Attributes:
        workload_type: 'daemonset', 'statefulset' or 'deployment'
        match_labels: `spec.selector.matchLabels` used to find its pods
    """

    workload_type: str
    name: str
    namespace: str
    labels: Dict[str, str] = Field(default_factory=dict)
    match_labels: Optional[Dict[str, str]] = None
