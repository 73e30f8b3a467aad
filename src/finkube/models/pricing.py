# src/finkube/models/pricing.py

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BillingMode(str, Enum):
    """Pricing model of a node."""

    ON_DEMAND = "ondemand"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    SPOT = "spot"
    FALLBACK = "fallback"


class InstanceSpec(BaseModel):
    """One entry of an instance-type catalog."""

    model_config = ConfigDict(frozen=True)

    instance_type: str = Field(..., description="Cloud provider instance type")
    cpu_core_count: float = Field(..., ge=0, description="vCPU cores of the instance type")
    ram_gib: float = Field(..., ge=0, description="Memory of the instance type in GiB")


class InstancePrice(BaseModel):
    """
    Hourly price of one node shape in one region.

    Attributes:
        total_hourly: Price of the whole instance per hour
        cpu_hourly: CPU price per hour; the CPU share of the instance price
            for catalog pricing, the flat per-core rate for default pricing
        ram_hourly: Memory price per hour, split the same way
        cpu_core_count: Cores used for the split (catalog value, plus padding for default pricing)
        ram_capacity_gib: GiB used for the split
    """

    model_config = ConfigDict(frozen=True)

    region: str
    instance_type: str
    total_hourly: float = Field(..., ge=0)
    cpu_hourly: float = Field(..., ge=0)
    ram_hourly: float = Field(..., ge=0)
    cpu_core_count: float = Field(..., ge=0)
    ram_capacity_gib: float = Field(..., ge=0)
    billing_mode: BillingMode = BillingMode.ON_DEMAND
    billing_period: int = Field(0, description="Reserved period length in billing units, 0 for on-demand")
    cloud_provider: str = "default"


class ClusterInfo(BaseModel):
    """Identity of the cluster the agent runs in."""

    model_config = ConfigDict(frozen=True)

    cluster_name: str
    cluster_id: str
