# src/finkube/cli/report.py
"""
One-shot query commands of the FinKube CLI: instance prices and cluster
costs, rendered as console tables.
"""

import asyncio
import logging
from typing import Optional

import typer
from typing_extensions import Annotated

from ..cloudprice.ack import AckCloudProvider
from ..core.aggregator import QueryAggregator
from ..core.analyzer import AGGREGATE_BY_OPTIONS, CostAnalyzer
from ..core.config import config
from ..core.exceptions import FinKubeError
from ..models.cost import TimeWindow
from ..query.prom_client import PromQueryClient
from ..reporters.console_reporter import ConsoleReporter

logger = logging.getLogger(__name__)

COST_VIEWS = ("summary", "cluster", "namespace", "workload")


def price(
    region: Annotated[str, typer.Argument(help="Cloud region, e.g. cn-hangzhou.")],
    instance_type: Annotated[str, typer.Argument(help="Instance type, e.g. ecs.g6.large.")],
) -> None:
    """
    Show the hourly on-demand price of an ACK instance type.
    """

    async def _price():
        provider = AckCloudProvider()
        try:
            return await provider.get_hourly_price(region, instance_type)
        finally:
            await provider.close()

    try:
        result = asyncio.run(_price())
    except FinKubeError as e:
        logger.error(f"Could not resolve the price: {e}")
        raise typer.Exit(code=1)
    ConsoleReporter().report_price(result)


def costs(
    cluster_id: Annotated[Optional[str], typer.Option("--cluster-id", help="Cluster to query (CLUSTER_ID).")] = None,
    tenant: Annotated[Optional[str], typer.Option("--tenant", help="Backend tenant (QUERY_BACKEND_TENANT).")] = None,
    view: Annotated[str, typer.Option("--view", help="summary, cluster, namespace or workload.")] = "summary",
    aggregate_by: Annotated[
        str, typer.Option("--aggregate-by", help="For the workload view: all, pod, deployment, statefulset, daemonset.")
    ] = "all",
    step: Annotated[int, typer.Option("--step", help="Step of the month-to-date window, in seconds.")] = 86400,
) -> None:
    """
    Show month-to-date costs of a cluster from the metrics backend.
    """
    cluster_id = cluster_id or config.CLUSTER_ID
    tenant = tenant or config.QUERY_BACKEND_TENANT or None
    if not cluster_id:
        typer.echo("A cluster id is required (--cluster-id or CLUSTER_ID).", err=True)
        raise typer.Exit(code=2)
    if view not in COST_VIEWS:
        typer.echo(f"--view must be one of {', '.join(COST_VIEWS)}.", err=True)
        raise typer.Exit(code=2)
    if aggregate_by not in AGGREGATE_BY_OPTIONS:
        typer.echo(f"--aggregate-by must be one of {', '.join(AGGREGATE_BY_OPTIONS)}.", err=True)
        raise typer.Exit(code=2)

    reporter = ConsoleReporter()

    async def _costs():
        client = PromQueryClient(config.QUERY_BACKEND_ENDPOINT)
        analyzer = CostAnalyzer(QueryAggregator(client))
        try:
            if view == "summary":
                reporter.report_costs_summary(await analyzer.cluster_costs_summary(tenant, cluster_id))
                return
            window = TimeWindow.current_month(step_seconds=step)
            if view == "cluster":
                records = await analyzer.cluster_resource_costs(tenant, cluster_id, window)
            elif view == "namespace":
                records = await analyzer.namespace_costs(tenant, cluster_id, window)
            else:
                records = await analyzer.workload_costs(tenant, cluster_id, window, aggregate_by=aggregate_by)
            reporter.report_records(records, title=f"FinKube {view} costs of {cluster_id}")
        finally:
            await client.close()

    try:
        asyncio.run(_costs())
    except (FinKubeError, ValueError) as e:
        logger.error(f"Could not query costs: {e}")
        raise typer.Exit(code=1)
