# src/finkube/models/cost.py
"""
Pydantic models returned by the query side: the join key of aggregated
series, the time window of a query and the normalised cost and utilisation
records built from it.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.units import HOUR_IN_SECONDS, MIN_STEP_SECONDS, month_start

# Upper bound on the number of points a range query may return.
MAX_POINTS_PER_SERIES = 10000


class EntityKind(str, Enum):
    CLUSTER = "cluster"
    NAMESPACE = "namespace"
    WORKLOAD = "workload"
    POD = "pod"
    NODE = "node"


class ConnectionState(str, Enum):
    RUNNING = "running"
    CONNECT_FAILED = "connect_failed"


class EntityKey(BaseModel):
    """Stable, hashable key used to join partial query results."""

    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    cluster_id: str
    namespace: str = ""
    workload_type: str = ""
    name: str = ""


class TimeWindow(BaseModel):
    """
    A [start, end] window evaluated every `step_seconds`.

    The step is floored at the agent sampling period; a smaller step would
    yield windows without any sample.
    """

    start: datetime
    end: datetime
    step_seconds: int = Field(HOUR_IN_SECONDS, description="Evaluation step of range queries, in seconds.")

    @field_validator("step_seconds")
    @classmethod
    def _check_step(cls, value: int) -> int:
        if value < MIN_STEP_SECONDS:
            raise ValueError(f"step_seconds must be >= {MIN_STEP_SECONDS}, got {value}")
        return value

    @model_validator(mode="after")
    def _check_bounds(self) -> "TimeWindow":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self

    @classmethod
    def auto(cls, start: datetime, end: datetime) -> "TimeWindow":
        """Picks the smallest step keeping the window under MAX_POINTS_PER_SERIES points."""
        duration = int((end - start).total_seconds())
        step = math.ceil(duration / MAX_POINTS_PER_SERIES)
        return cls(start=start, end=end, step_seconds=max(step, MIN_STEP_SECONDS))

    @classmethod
    def current_month(cls, now: Optional[datetime] = None, step_seconds: int = HOUR_IN_SECONDS) -> "TimeWindow":
        now = now or datetime.now(timezone.utc)
        return cls(start=month_start(now), end=now, step_seconds=step_seconds)

    @property
    def start_ts(self) -> int:
        return int(self.start.timestamp())

    @property
    def end_ts(self) -> int:
        return int(self.end.timestamp())

    @property
    def duration_seconds(self) -> int:
        return self.end_ts - self.start_ts


class CostRecord(BaseModel):
    """
    Normalised cost and utilisation of one entity at one timestamp.

    Costs are in currency over the step ending at `timestamp`; counts and
    usages are average cores or GiB over that step. Fields whose series is
    missing stay at zero.
    """

    key: EntityKey
    timestamp: int = Field(..., description="Unix timestamp of the evaluation point.")
    total_cost: float = 0.0
    cost_on_demand: float = 0.0
    cost_spot: float = 0.0
    cost_fallback: float = 0.0
    cost_period: float = 0.0
    cpu_cost: float = 0.0
    ram_cost: float = 0.0
    cpu_core_count: float = 0.0
    cpu_core_usage: float = 0.0
    cpu_request: float = 0.0
    ram_gib_count: float = 0.0
    ram_gib_usage: float = 0.0
    ram_request: float = 0.0
    pod_count: float = 0.0


class ClusterMetricsSummary(BaseModel):
    """Totals of one resource across the cluster, now or at `timestamp`."""

    resource: str
    unit: str
    timestamp: Optional[int] = None
    total: float = 0.0
    available: float = 0.0
    system_taken: float = 0.0
    request: float = 0.0
    usage: float = 0.0


class ClusterCostsSummary(BaseModel):
    """Month-to-date cost of a cluster and the projections derived from it."""

    cluster_id: str
    cluster_name: str = ""
    cloud_provider: str = ""
    region: str = ""
    connection_state: ConnectionState = ConnectionState.CONNECT_FAILED
    last_active_time: Optional[int] = Field(None, description="Unix timestamp of the last heartbeat sample.")
    active_seconds: float = 0.0
    current_month_cost: float = 0.0
    estimated_month_cost: float = 0.0
    average_daily_cost: float = 0.0
    average_hourly_core_cost: float = 0.0
