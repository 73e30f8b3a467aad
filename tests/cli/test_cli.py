# tests/cli/test_cli.py

from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from finkube import __version__
from finkube.cli import app
from finkube.core.exceptions import PriceResolutionError, UpstreamQueryError
from finkube.models.cost import ClusterCostsSummary
from finkube.models.pricing import InstancePrice

runner = CliRunner()


def test_version_command():
    """`finkube version` prints the package version."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"FinKube version: {__version__}" in result.stdout


def test_version_flag():
    """`finkube --version` prints the version and exits."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_price_command():
    """`finkube price` shows the resolved price of an instance type."""
    price = InstancePrice(
        region="cn-hangzhou",
        instance_type="ecs.g6.large",
        total_hourly=0.5,
        cpu_hourly=0.375,
        ram_hourly=0.125,
        cpu_core_count=2,
        ram_capacity_gib=8,
        cloud_provider="ack",
    )
    with patch("finkube.cli.report.AckCloudProvider") as provider_cls:
        provider_cls.return_value.get_hourly_price = AsyncMock(return_value=price)
        provider_cls.return_value.close = AsyncMock()
        result = runner.invoke(app, ["price", "cn-hangzhou", "ecs.g6.large"])

    assert result.exit_code == 0
    assert "ecs.g6.large" in result.stdout
    provider_cls.return_value.close.assert_awaited_once()


def test_price_command_unknown_type():
    """An unresolvable price exits with status 1."""
    with patch("finkube.cli.report.AckCloudProvider") as provider_cls:
        provider_cls.return_value.get_hourly_price = AsyncMock(side_effect=PriceResolutionError("unknown type"))
        provider_cls.return_value.close = AsyncMock()
        result = runner.invoke(app, ["price", "cn-hangzhou", "ecs.nope"])

    assert result.exit_code == 1


def test_costs_requires_valid_view():
    """An unknown view is a usage error."""
    result = runner.invoke(app, ["costs", "--cluster-id", "c1", "--view", "galaxy"])
    assert result.exit_code == 2


def test_costs_requires_cluster_id(monkeypatch):
    """Without --cluster-id or CLUSTER_ID there is nothing to query."""
    monkeypatch.setenv("CLUSTER_ID", "")
    result = runner.invoke(app, ["costs"])
    assert result.exit_code == 2


def test_costs_summary_view():
    """The summary view renders the month summary of the cluster."""
    analyzer = MagicMock()
    analyzer.cluster_costs_summary = AsyncMock(
        return_value=ClusterCostsSummary(cluster_id="c1", cluster_name="prod", current_month_cost=12.5)
    )
    with patch("finkube.cli.report.CostAnalyzer", return_value=analyzer), patch(
        "finkube.cli.report.PromQueryClient"
    ) as client_cls:
        client_cls.return_value.close = AsyncMock()
        result = runner.invoke(app, ["costs", "--cluster-id", "c1"])

    assert result.exit_code == 0
    assert "12.50" in result.stdout
    analyzer.cluster_costs_summary.assert_awaited_once_with(None, "c1")


def test_costs_backend_failure_exits_1():
    """A backend failure exits with status 1."""
    analyzer = MagicMock()
    analyzer.namespace_costs = AsyncMock(side_effect=UpstreamQueryError("down"))
    with patch("finkube.cli.report.CostAnalyzer", return_value=analyzer), patch(
        "finkube.cli.report.PromQueryClient"
    ) as client_cls:
        client_cls.return_value.close = AsyncMock()
        result = runner.invoke(app, ["costs", "--cluster-id", "c1", "--view", "namespace"])

    assert result.exit_code == 1
