# src/finkube/cli/main.py
"""
This module is the main entry point for the FinKube CLI.

It aggregates all commands from the submodules (agent, analyzer, report).
"""

import logging

import typer

from ..core.config import config
from . import agent, analyzer, report

# --- Setup Logger ---
logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="finkube",
    help="Attribute the infrastructure cost of your Kubernetes clusters to nodes, pods and workloads.",
    add_completion=False,
)


def version_callback(value: bool):
    """
    Prints the version of FinKube.
    """
    if value:
        from .. import __version__

        typer.echo(f"FinKube version: {__version__}")
        raise typer.Exit()


@app.command()
def version():
    """
    Show the version of FinKube.
    """
    from .. import __version__

    typer.echo(f"FinKube version: {__version__}")


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """
    FinKube CLI main entry point.
    """
    pass


# Register commands
app.add_typer(agent.app, name="agent")
app.add_typer(analyzer.app, name="analyzer")
app.command(name="price")(report.price)
app.command(name="costs")(report.costs)


if __name__ == "__main__":
    app()
