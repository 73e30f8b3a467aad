# src/finkube/collectors/node_collector.py

import logging
from typing import List

from ..core.k8s_client import get_core_v1_api
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)


class NodeCollector(BaseCollector):
    """Lists the nodes of the cluster."""

    def __init__(self, api=None):
        super().__init__(api=api, api_factory=get_core_v1_api)

    async def collect(self) -> List:
        api = await self._ensure_client()
        nodes = await self._call("list nodes", api.list_node, watch=False)
        if not nodes.items:
            logger.warning("No nodes found in the cluster.")
        return list(nodes.items)
