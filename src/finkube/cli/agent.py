# src/finkube/cli/agent.py
"""
Agent command for the FinKube CLI.

Wires the in-cluster components together: price resolver, resource tracker
fed by cluster watches, the metric loops, and the HTTP endpoint the gauges
are scraped from.
"""

import asyncio
import logging
import traceback
from typing import Optional

import typer
import uvicorn
from typing_extensions import Annotated

from ..api.app import create_agent_app
from ..cloudprice.factory import get_cloud_provider
from ..collectors.event_source import ClusterEventSource
from ..core.config import config
from ..core.exceptions import ConfigError
from ..core.k8s_client import get_core_v1_api
from ..core.tracker import NodeResourceTracker
from ..metrics.emitter import MetricsEmitter
from ..metrics.sink import MetricsSink

logger = logging.getLogger(__name__)

app = typer.Typer(name="agent", help="Run the in-cluster cost metrics agent.")


async def run_agent(host: str, port: int) -> None:
    """Starts every agent component and serves `/metrics` until the server exits."""
    core_api = await get_core_v1_api()
    if core_api is None:
        raise ConfigError("No Kubernetes configuration found; the agent must run with cluster access.")

    provider = await get_cloud_provider(config.CLOUD_PROVIDER, core_api=core_api)
    try:
        cluster = await provider.parse_cluster_info(config.CLUSTER_NAME, config.CLUSTER_ID or None)
        logger.info(f"Collecting costs of cluster {cluster.cluster_name} ({cluster.cluster_id}).")

        sink = MetricsSink()
        async with NodeResourceTracker() as tracker:
            events = ClusterEventSource(tracker, api=core_api)
            emitter = MetricsEmitter(sink, provider, tracker, cluster)
            server = uvicorn.Server(
                uvicorn.Config(create_agent_app(sink), host=host, port=port, log_level=config.LOG_LEVEL.lower())
            )
            try:
                await events.start()
                emitter.start()
                await server.serve()
            finally:
                logger.info("Shutting down the FinKube agent...")
                await emitter.stop()
                await events.stop()
    finally:
        await provider.close()


@app.callback(invoke_without_command=True)
def agent(
    ctx: typer.Context,
    host: Annotated[str, typer.Option("--host", help="Address the metrics endpoint binds to.")] = "0.0.0.0",
    port: Annotated[
        Optional[int], typer.Option("--port", help="Port of the metrics endpoint (AGENT_METRICS_PORT).")
    ] = None,
) -> None:
    """
    Start the agent and block until SIGINT/SIGTERM.
    """
    if ctx.invoked_subcommand is not None:
        return

    logger.info("Initializing the FinKube agent...")
    try:
        asyncio.run(run_agent(host, port or config.AGENT_METRICS_PORT))
    except KeyboardInterrupt:
        logger.info("Shutting down the FinKube agent.")
        raise typer.Exit()
    except ConfigError as e:
        logger.error(f"Invalid agent configuration: {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        logger.error(f"An unexpected error occurred in the agent: {e}")
        logger.error("Agent failed: %s", traceback.format_exc())
        raise typer.Exit(code=1)
