# src/finkube/cloudprice/factory.py
"""
Selects the pricing strategy once, at agent startup.
"""

import logging
from typing import Optional

import httpx

from .ack import AckCloudProvider
from .base import CloudPriceProvider
from .default import DefaultCloudProvider

logger = logging.getLogger(__name__)

# Provider id prefixes with no pricing integration yet.
_UNSUPPORTED_PROVIDER_PREFIXES = {
    "aws": "AWS",
    "gce": "GCE",
    "azure": "Azure",
}


async def detect_cloud_provider(core_api) -> str:
    """Guesses the cloud provider from the first node's `spec.providerID`."""
    nodes = await core_api.list_node(watch=False)
    if not nodes.items:
        logger.warning("No nodes found while detecting the cloud provider; using default pricing.")
        return "default"

    provider_id = (nodes.items[0].spec.provider_id or "").lower()
    for prefix, display_name in _UNSUPPORTED_PROVIDER_PREFIXES.items():
        if provider_id.startswith(prefix):
            logger.warning(f"FinKube doesn't support {display_name} pricing yet, default pricing data will be used.")
            return "default"
    return "default"


async def get_cloud_provider(
    provider_name: str,
    core_api=None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> CloudPriceProvider:
    """
    Builds the pricing strategy for `provider_name`.

    An empty name triggers detection from the cluster's nodes.
    """
    provider_name = (provider_name or "").lower()
    if not provider_name and core_api is not None:
        provider_name = await detect_cloud_provider(core_api)

    if provider_name == AckCloudProvider.name:
        logger.info("Using Alibaba Cloud (ACK) pricing.")
        return AckCloudProvider(http_client=http_client, core_api=core_api)

    if provider_name not in ("", DefaultCloudProvider.name):
        logger.warning(f"Unknown cloud provider '{provider_name}', default pricing data will be used.")
    logger.info("Using default flat-rate pricing.")
    return DefaultCloudProvider(core_api=core_api)
