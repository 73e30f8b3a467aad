# src/finkube/collectors/base_collector.py
"""
Abstract base class for the collectors reading live cluster state.

Collectors are the agent's view of the cluster: the emitters ask them for
a fresh listing on every tick.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional

from kubernetes_asyncio.client.rest import ApiException

from ..core.exceptions import UpstreamQueryError


class BaseCollector(ABC):
    """
    Abstract Base Class for all cluster state collectors.
    """

    def __init__(self, api=None, api_factory: Callable[[], Awaitable[Any]] = None):
        self._api = api
        self._api_factory = api_factory

    async def _ensure_client(self):
        """Lazily initialize the Kubernetes client from the centralized loader."""
        if self._api is None and self._api_factory is not None:
            self._api = await self._api_factory()
        if self._api is None:
            raise UpstreamQueryError(f"{type(self).__name__}: Kubernetes client is not configured")
        return self._api

    async def _call(self, description: str, func: Callable[..., Awaitable[Any]], *args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except ApiException as e:
            raise UpstreamQueryError(f"Failed to {description}: {e.status} {e.reason}") from e

    @abstractmethod
    async def collect(self) -> List[Any]:
        """
        Fetches the current objects from the cluster.

        Raises:
            UpstreamQueryError: If the Kubernetes API is unavailable or fails.
        """
        pass

    async def close(self):
        """
        Clean up resources (e.g., close API clients).
        """
        api_client: Optional[Any] = getattr(self._api, "api_client", None)
        if api_client is not None and hasattr(api_client, "close"):
            await api_client.close()
