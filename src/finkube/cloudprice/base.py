# src/finkube/cloudprice/base.py
"""
Common interface of the cloud pricing strategies.

A strategy is selected once at startup (see `factory.get_cloud_provider`)
and then asked for the hourly price of every node the agent sees.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from ..core.exceptions import ConfigError
from ..models.pricing import ClusterInfo, InstancePrice


def split_hourly_price(total_hourly: float, ratio: float) -> Tuple[float, float]:
    """
    Splits an instance's hourly price between CPU and memory.

    `ratio` is how much more the CPU share weighs than the memory share.
    Returns `(cpu_share, ram_share)` which always add up to `total_hourly`.
    """
    if ratio <= 0:
        raise ValueError(f"CPU/RAM price ratio must be positive, got {ratio}")
    return total_hourly * ratio / (ratio + 1), total_hourly / (ratio + 1)


class CloudPriceProvider(ABC):
    """
    Abstract base class for all cloud pricing strategies.
    """

    name: str = "default"

    @abstractmethod
    async def get_node_hourly_price(self, node) -> InstancePrice:
        """
        Resolves the hourly price of a Kubernetes node.

        Raises:
            PerEntityError: If the node lacks the labels or capacity needed for pricing.
            PriceResolutionError: If the node's shape cannot be priced.
            UpstreamQueryError: If the pricing backend fails.
        """
        pass

    @abstractmethod
    async def parse_cluster_info(self, cluster_name: str, cluster_id: Optional[str] = None) -> ClusterInfo:
        """
        Completes the cluster identity, discovering the id when not configured.

        Raises:
            ConfigError: If the cluster name is missing or no id can be found.
        """
        pass

    async def close(self):
        """Releases any network resources held by the provider."""
        pass

    @staticmethod
    def _require_cluster_name(cluster_name: str) -> None:
        if not cluster_name:
            raise ConfigError("Please set the cluster name via the CLUSTER_NAME environment variable.")
