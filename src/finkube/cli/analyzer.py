# src/finkube/cli/analyzer.py
"""
Analyzer command for the FinKube CLI: serves the cost query API.
"""

import logging
from typing import Optional

import typer
import uvicorn
from typing_extensions import Annotated

from ..api.app import create_app
from ..core.config import config

logger = logging.getLogger(__name__)

app = typer.Typer(name="analyzer", help="Serve the cost and utilisation query API.")


@app.callback(invoke_without_command=True)
def analyzer(
    ctx: typer.Context,
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address (API_HOST).")] = None,
    port: Annotated[Optional[int], typer.Option("--port", help="Bind port (API_PORT).")] = None,
) -> None:
    """
    Start the analyzer API against QUERY_BACKEND_ENDPOINT.
    """
    if ctx.invoked_subcommand is not None:
        return

    logger.info(f"Starting the FinKube analyzer against {config.QUERY_BACKEND_ENDPOINT}...")
    uvicorn.run(create_app(use_lifespan=True), host=host or config.API_HOST, port=port or config.API_PORT)
