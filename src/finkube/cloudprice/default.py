# src/finkube/cloudprice/default.py
"""
Flat-rate pricing used when no cloud pricing integration is available.
"""

import logging
from typing import Optional

from ..core.config import config
from ..core.exceptions import ConfigError, PerEntityError
from ..models.pricing import BillingMode, ClusterInfo, InstancePrice
from ..utils.k8s_utils import parse_quantity
from ..utils.units import bytes_to_gib
from .base import CloudPriceProvider

logger = logging.getLogger(__name__)

DEFAULT_INSTANCE_TYPE = "default_instance_type"
DEFAULT_REGION = "default_region"


class DefaultCloudProvider(CloudPriceProvider):
    """
    Prices every node as `cpu_rate * cores + ram_rate * GiB`.

    The node's reported capacity does not include what the hypervisor keeps
    for itself, so the configured deviations are added to the core and GiB
    counts used for cost attribution.
    """

    name = "default"

    def __init__(
        self,
        core_api=None,
        cpu_core_hourly_price: float = None,
        ram_gb_hourly_price: float = None,
        cpu_core_reserved: float = None,
        ram_gb_reserved: float = None,
    ):
        self._core_api = core_api
        self.cpu_core_hourly_price = (
            cpu_core_hourly_price if cpu_core_hourly_price is not None else config.CUSTOM_CPU_CORE_HOUR_PRICE
        )
        self.ram_gb_hourly_price = (
            ram_gb_hourly_price if ram_gb_hourly_price is not None else config.CUSTOM_RAM_GB_HOUR_PRICE
        )
        self.cpu_core_reserved = cpu_core_reserved if cpu_core_reserved is not None else config.NODE_CPU_DEVIATION
        self.ram_gb_reserved = ram_gb_reserved if ram_gb_reserved is not None else config.NODE_RAM_DEVIATION

    async def get_node_hourly_price(self, node) -> InstancePrice:
        capacity = (node.status.capacity if node.status else None) or {}
        if "cpu" not in capacity or "memory" not in capacity:
            raise PerEntityError(f"Node '{node.metadata.name}' reports no cpu/memory capacity")

        try:
            cores = float(parse_quantity(capacity["cpu"]))
            ram_gib = bytes_to_gib(parse_quantity(capacity["memory"]))
        except ValueError as e:
            raise PerEntityError(f"Node '{node.metadata.name}' has an invalid capacity: {e}") from e

        return InstancePrice(
            region=DEFAULT_REGION,
            instance_type=DEFAULT_INSTANCE_TYPE,
            total_hourly=self.cpu_core_hourly_price * cores + self.ram_gb_hourly_price * ram_gib,
            cpu_hourly=self.cpu_core_hourly_price,
            ram_hourly=self.ram_gb_hourly_price,
            cpu_core_count=cores + self.cpu_core_reserved,
            ram_capacity_gib=ram_gib + self.ram_gb_reserved,
            billing_mode=BillingMode.ON_DEMAND,
            billing_period=0,
            cloud_provider=self.name,
        )

    async def parse_cluster_info(self, cluster_name: str, cluster_id: Optional[str] = None) -> ClusterInfo:
        self._require_cluster_name(cluster_name)
        if cluster_id:
            return ClusterInfo(cluster_name=cluster_name, cluster_id=cluster_id)
        if self._core_api is None:
            raise ConfigError("CLUSTER_ID is not set and the Kubernetes API is unavailable to discover it")

        namespace = await self._core_api.read_namespace("kube-system")
        logger.info(f"Using the kube-system namespace UID as cluster id for '{cluster_name}'.")
        return ClusterInfo(cluster_name=cluster_name, cluster_id=namespace.metadata.uid)
