# src/finkube/models/node.py

from decimal import Decimal
from typing import Dict, Set

from pydantic import BaseModel, ConfigDict, Field


class NodeResourceRecord(BaseModel):
    """
    Live resource accounting of one tracked node.

    Attributes:
        node_name: Node name
        allocatable: Schedulable capacity reported by the kubelet, per resource
        requested: Sum of the requests of the pods accounted on the node, per resource
        pods: `namespace/name` keys of the pods accounted in `requested`

    CPU quantities are in cores, memory in bytes, everything else in the
    resource's own unit.
    """

    model_config = ConfigDict(frozen=False, extra="forbid")

    node_name: str = Field(..., description="Node name")
    allocatable: Dict[str, Decimal] = Field(default_factory=dict)
    requested: Dict[str, Decimal] = Field(default_factory=dict)
    pods: Set[str] = Field(default_factory=set)

    def available(self, resource: str) -> Decimal:
        """Allocatable minus requested for `resource`."""
        return self.allocatable.get(resource, Decimal(0)) - self.requested.get(resource, Decimal(0))

    def system_taken(self, resource: str, capacity: Decimal) -> Decimal:
        """Part of `capacity` the OS and kubelet keep for themselves."""
        return Decimal(capacity) - self.allocatable.get(resource, Decimal(0))
