# src/finkube/cloudprice/ack.py
"""
Pricing for Alibaba Cloud Container Service (ACK) nodes.

Instance specs come from the public ECS catalog (one bulk request for every
instance type); hourly pay-as-you-go prices come from the price calculator,
one request per (region, instance type). Both are cached for the lifetime
of the process.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from ..core.config import config
from ..core.exceptions import ConfigError, PerEntityError, PriceResolutionError, UpstreamQueryError
from ..models.pricing import BillingMode, ClusterInfo, InstancePrice, InstanceSpec
from ..utils.http_client import get_async_http_client
from ..utils.k8s_utils import node_label
from .base import CloudPriceProvider, split_hourly_price

logger = logging.getLogger(__name__)

NODE_REGION_LABEL = "topology.kubernetes.io/region"
NODE_TYPE_LABEL = "node.kubernetes.io/instance-type"
CLUSTER_ID_LABEL = "ack.aliyun.com"


def build_price_query(region: str, instance_type: str) -> Dict[str, Any]:
    """Request body of the price calculator for one hour of one instance."""
    return {
        "tenant": "TenantCalculator",
        "configurations": [
            {
                "commodityCode": "ecs",
                "specCode": "ecs",
                "chargeType": "POSTPAY",
                "orderType": "BUY",
                "quantity": 1,
                "duration": 1,
                "pricingCycle": "Hour",
                "useTimeUnit": "Hour",
                "useTimeQuantity": 1,
                "components": [
                    {
                        "componentCode": "vm_region_no",
                        "instanceProperty": [{"code": "vm_region_no", "value": region}],
                    },
                    {
                        "componentCode": "instance_type",
                        "instanceProperty": [{"code": "instance_type", "value": instance_type}],
                    },
                ],
            }
        ],
    }


class AckCloudProvider(CloudPriceProvider):
    """
    Resolves and caches hourly prices of ACK nodes.

    The spec cache and the price cache each have their own lock. Lookups
    check the cache under the lock, fetch outside of it and store under it
    again, so concurrent misses may query the backend twice but always
    converge on the same cached value. Failed fetches are never cached.
    """

    name = "ack"

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        core_api=None,
        cpu_memory_ratio: float = None,
        spec_url: str = None,
        price_url: str = None,
    ):
        self._client = http_client or get_async_http_client()
        self._owns_client = http_client is None
        self._core_api = core_api
        self.cpu_memory_ratio = cpu_memory_ratio if cpu_memory_ratio is not None else config.CPUCORE_RAMGB_PRICE_RATIO
        self.spec_url = spec_url or config.ACK_INSTANCE_SPEC_URL
        self.price_url = price_url or config.ACK_INSTANCE_PRICE_URL

        self._spec_cache: Dict[str, InstanceSpec] = {}
        self._spec_lock = asyncio.Lock()
        self._price_cache: Dict[Tuple[str, str], InstancePrice] = {}
        self._price_lock = asyncio.Lock()

    async def get_node_hourly_price(self, node) -> InstancePrice:
        node_name = node.metadata.name
        if not node.metadata.labels:
            raise PerEntityError(f"Node '{node_name}' has no labels")
        region = node_label(node, NODE_REGION_LABEL)
        if not region:
            raise PerEntityError(f"Node '{node_name}' has no label {NODE_REGION_LABEL}")
        instance_type = node_label(node, NODE_TYPE_LABEL)
        if not instance_type:
            raise PerEntityError(f"Node '{node_name}' has no label {NODE_TYPE_LABEL}")
        return await self.get_hourly_price(region, instance_type)

    async def get_hourly_price(self, region: str, instance_type: str) -> InstancePrice:
        """
        Returns the hourly price of `instance_type` in `region`.

        Raises:
            PriceResolutionError: If the type is not in the catalog or the region has no price.
            UpstreamQueryError: If a pricing request fails.
        """
        key = (region, instance_type)
        async with self._price_lock:
            cached = self._price_cache.get(key)
        if cached is not None:
            return cached

        spec = await self.get_instance_spec(instance_type)
        total = await self._query_price(region, instance_type)
        cpu_share, ram_share = split_hourly_price(total, self.cpu_memory_ratio)
        price = InstancePrice(
            region=region,
            instance_type=instance_type,
            total_hourly=total,
            cpu_hourly=cpu_share,
            ram_hourly=ram_share,
            cpu_core_count=spec.cpu_core_count,
            ram_capacity_gib=spec.ram_gib,
            billing_mode=BillingMode.ON_DEMAND,
            billing_period=0,
            cloud_provider=self.name,
        )

        async with self._price_lock:
            self._price_cache[key] = price
        return price

    async def get_instance_spec(self, instance_type: str) -> InstanceSpec:
        """Returns the catalog entry of `instance_type`, loading the catalog on a miss."""
        async with self._spec_lock:
            spec = self._spec_cache.get(instance_type)
        if spec is not None:
            return spec

        catalog = await self._query_catalog()
        async with self._spec_lock:
            for type_id, entry in catalog.items():
                self._spec_cache.setdefault(type_id, entry)
            spec = self._spec_cache.get(instance_type)

        if spec is None:
            raise PriceResolutionError(f"Could not find instance type '{instance_type}' in the ECS catalog")
        return spec

    async def _get_json(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamQueryError(f"Request to {url} failed: {e}") from e

        if resp.status_code != 200:
            raise UpstreamQueryError(f"Request to {url} returned HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamQueryError(f"Malformed JSON from {url}") from e

    async def _query_catalog(self) -> Dict[str, InstanceSpec]:
        logger.info("Querying the ECS instance type catalog...")
        payload = await self._get_json("GET", self.spec_url)
        try:
            entries = payload["data"]["components"]["instance_type"]["instance_type"]
        except (KeyError, TypeError) as e:
            raise UpstreamQueryError("ECS catalog response has no instance types") from e

        catalog: Dict[str, InstanceSpec] = {}
        for entry in entries:
            type_id = entry.get("instanceTypeId")
            try:
                catalog[type_id] = InstanceSpec(
                    instance_type=type_id,
                    cpu_core_count=float(entry.get("cpuCoreCount")),
                    ram_gib=float(entry.get("memorySize")),
                )
            except (TypeError, ValueError):
                logger.warning(f"Skipping catalog entry with unparsable spec: {entry}")
        logger.info(f"Loaded {len(catalog)} instance types from the ECS catalog.")
        return catalog

    async def _query_price(self, region: str, instance_type: str) -> float:
        payload = await self._get_json("POST", self.price_url, json=build_price_query(region, instance_type))
        try:
            amount = payload["data"]["order"]["tradeAmount"]
        except (KeyError, TypeError):
            raise PriceResolutionError(f"No price for instance type '{instance_type}' in region '{region}'")
        try:
            return float(amount)
        except (TypeError, ValueError) as e:
            raise UpstreamQueryError(f"Malformed price '{amount}' for {instance_type} in {region}") from e

    async def parse_cluster_info(self, cluster_name: str, cluster_id: Optional[str] = None) -> ClusterInfo:
        self._require_cluster_name(cluster_name)
        if cluster_id:
            return ClusterInfo(cluster_name=cluster_name, cluster_id=cluster_id)
        if self._core_api is not None:
            nodes = await self._core_api.list_node(watch=False)
            for node in nodes.items:
                label_id = node_label(node, CLUSTER_ID_LABEL)
                if label_id:
                    return ClusterInfo(cluster_name=cluster_name, cluster_id=label_id)
        raise ConfigError(f"CLUSTER_ID is not set and no node carries the '{CLUSTER_ID_LABEL}' label")

    async def close(self):
        if self._owns_client:
            await self._client.aclose()
