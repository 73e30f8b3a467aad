# tests/cloudprice/test_default_provider.py

from unittest.mock import AsyncMock, MagicMock

import pytest

from finkube.cloudprice.ack import AckCloudProvider
from finkube.cloudprice.default import DefaultCloudProvider
from finkube.cloudprice.factory import detect_cloud_provider, get_cloud_provider
from finkube.core.exceptions import ConfigError, PerEntityError


@pytest.mark.asyncio
async def test_default_price_from_flat_rates(node_factory):
    """Price is cores * core rate + GiB * GiB rate, with reserved padding added to the counts."""
    provider = DefaultCloudProvider(
        cpu_core_hourly_price=0.1, ram_gb_hourly_price=0.01, cpu_core_reserved=0.5, ram_gb_reserved=1.0
    )

    price = await provider.get_node_hourly_price(node_factory(cpu="4", memory="16Gi"))

    assert price.total_hourly == pytest.approx(4 * 0.1 + 16 * 0.01)
    assert price.cpu_hourly == pytest.approx(0.1)
    assert price.ram_hourly == pytest.approx(0.01)
    assert price.cpu_core_count == pytest.approx(4.5)
    assert price.ram_capacity_gib == pytest.approx(17.0)
    assert price.cloud_provider == "default"


@pytest.mark.asyncio
async def test_default_price_without_padding(node_factory):
    """Without padding the counts are the reported capacity."""
    provider = DefaultCloudProvider(
        cpu_core_hourly_price=0.08, ram_gb_hourly_price=0.02, cpu_core_reserved=0, ram_gb_reserved=0
    )

    price = await provider.get_node_hourly_price(node_factory(cpu="2000m", memory="8Gi"))

    assert price.cpu_core_count == pytest.approx(2.0)
    assert price.ram_capacity_gib == pytest.approx(8.0)
    assert price.total_hourly == pytest.approx(2 * 0.08 + 8 * 0.02)


@pytest.mark.asyncio
async def test_default_price_requires_capacity(node_factory):
    """A node without reported capacity is a PerEntityError."""
    node = node_factory()
    node.status.capacity = {"cpu": "4"}
    with pytest.raises(PerEntityError):
        await DefaultCloudProvider().get_node_hourly_price(node)

    node.status.capacity = {"cpu": "four", "memory": "1Gi"}
    with pytest.raises(PerEntityError):
        await DefaultCloudProvider().get_node_hourly_price(node)


@pytest.mark.asyncio
async def test_default_cluster_id_from_kube_system():
    """Without a configured id, the kube-system namespace UID identifies the cluster."""
    core_api = MagicMock()
    core_api.read_namespace = AsyncMock(return_value=MagicMock(metadata=MagicMock(uid="uid-123")))

    info = await DefaultCloudProvider(core_api=core_api).parse_cluster_info("prod")

    assert info.cluster_id == "uid-123"
    core_api.read_namespace.assert_awaited_once_with("kube-system")


@pytest.mark.asyncio
async def test_default_cluster_info_errors():
    """Missing name, or a missing id with no API to discover it, is a ConfigError."""
    with pytest.raises(ConfigError):
        await DefaultCloudProvider().parse_cluster_info("")
    with pytest.raises(ConfigError):
        await DefaultCloudProvider().parse_cluster_info("prod")


@pytest.mark.asyncio
async def test_factory_selects_ack():
    """The 'ack' provider name selects ACK pricing."""
    provider = await get_cloud_provider("ACK", http_client=MagicMock())
    assert isinstance(provider, AckCloudProvider)


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["default", "eks", ""])
async def test_factory_falls_back_to_default(name):
    """Unknown or empty names without a cluster to inspect use default pricing."""
    provider = await get_cloud_provider(name)
    assert isinstance(provider, DefaultCloudProvider)


@pytest.mark.asyncio
async def test_detect_cloud_provider(node_factory):
    """Detection reads the first node's provider id and falls back to default."""
    core_api = MagicMock()
    core_api.list_node = AsyncMock(return_value=MagicMock(items=[node_factory(provider_id="aws:///eu-west-1a/i-1")]))
    assert await detect_cloud_provider(core_api) == "default"

    core_api.list_node = AsyncMock(return_value=MagicMock(items=[]))
    assert await detect_cloud_provider(core_api) == "default"

    provider = await get_cloud_provider("", core_api=core_api)
    assert isinstance(provider, DefaultCloudProvider)
