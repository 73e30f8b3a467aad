# src/finkube/core/k8s_client.py
"""
Lazy, shared Kubernetes client configuration.

The agent runs in-cluster; the CLI and the tests may run from a workstation
with a kubeconfig. Whichever source loads first is used for the lifetime of
the process.
"""

import asyncio
import logging
import typing

from kubernetes_asyncio import client, config

logger = logging.getLogger(__name__)

_CONFIG_LOCK = asyncio.Lock()
_CONFIG_SOURCE: typing.Optional[str] = None

ApiT = typing.TypeVar("ApiT")


async def _load_in_cluster() -> None:
    config.load_incluster_config()


async def _load_kubeconfig() -> None:
    await config.load_kube_config()


_CONFIG_LOADERS = (
    ("in-cluster service account", _load_in_cluster),
    ("kubeconfig file", _load_kubeconfig),
)


async def ensure_k8s_config() -> bool:
    """
    Loads the Kubernetes configuration once, trying each source in order.

    Returns:
        bool: True when a configuration is available.
    """
    global _CONFIG_SOURCE

    if _CONFIG_SOURCE is not None:
        return True

    async with _CONFIG_LOCK:
        if _CONFIG_SOURCE is not None:
            return True

        for source, loader in _CONFIG_LOADERS:
            try:
                await loader()
            except config.ConfigException as e:
                logger.debug(f"No Kubernetes configuration from the {source}: {e}")
                continue
            except OSError as e:
                logger.warning(f"Could not read the Kubernetes configuration from the {source}: {e}")
                continue
            _CONFIG_SOURCE = source
            logger.info(f"Loaded Kubernetes configuration from the {source}.")
            return True

    logger.warning("No Kubernetes configuration found; cluster collectors are disabled.")
    return False


async def _get_api(api_cls: typing.Callable[[], ApiT]) -> typing.Optional[ApiT]:
    if await ensure_k8s_config():
        return api_cls()
    return None


async def get_core_v1_api() -> typing.Optional[client.CoreV1Api]:
    """Nodes, pods and namespaces; None without a cluster configuration."""
    return await _get_api(client.CoreV1Api)


async def get_apps_v1_api() -> typing.Optional[client.AppsV1Api]:
    """Deployments, StatefulSets and DaemonSets."""
    return await _get_api(client.AppsV1Api)


async def get_custom_objects_api() -> typing.Optional[client.CustomObjectsApi]:
    """Used to read metrics.k8s.io usage from metrics-server."""
    return await _get_api(client.CustomObjectsApi)
