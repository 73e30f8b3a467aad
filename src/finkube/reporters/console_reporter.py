# src/finkube/reporters/console_reporter.py
"""
A reporter that displays prices, cost summaries and cost records in
formatted tables in the console.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from ..models.cost import ClusterCostsSummary, CostRecord, EntityKind
from ..models.pricing import InstancePrice

logger = logging.getLogger(__name__)


def _format_ts(timestamp: Optional[int]) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


class ConsoleReporter:
    """
    Renders FinKube data to the console using the 'rich' library.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def report_price(self, price: InstancePrice) -> None:
        table = Table(title=f"Hourly price of {price.instance_type} in {price.region}", header_style="bold magenta")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green", justify="right")
        table.add_row("Total ($/h)", f"{price.total_hourly:.4f}")
        table.add_row("CPU ($/h)", f"{price.cpu_hourly:.4f}")
        table.add_row("Memory ($/h)", f"{price.ram_hourly:.4f}")
        table.add_row("CPU cores", f"{price.cpu_core_count:g}")
        table.add_row("RAM (GiB)", f"{price.ram_capacity_gib:g}")
        table.add_row("Billing mode", price.billing_mode.value)
        table.add_row("Cloud provider", price.cloud_provider)
        self.console.print(table)

    def report_costs_summary(self, summary: ClusterCostsSummary) -> None:
        table = Table(title=f"Cluster {summary.cluster_name or summary.cluster_id}", header_style="bold magenta")
        table.add_column("Field", style="cyan")
        table.add_column("Value", justify="right")
        state_style = "green" if summary.connection_state.value == "running" else "red"
        table.add_row("State", f"[{state_style}]{summary.connection_state.value}[/{state_style}]")
        table.add_row("Cloud provider", summary.cloud_provider or "-")
        table.add_row("Region", summary.region or "-")
        table.add_row("Last active", _format_ts(summary.last_active_time))
        table.add_row("Active hours", f"{summary.active_seconds / 3600:.1f}")
        table.add_row("Month to date ($)", f"{summary.current_month_cost:.2f}")
        table.add_row("Estimated month ($)", f"{summary.estimated_month_cost:.2f}")
        table.add_row("Average daily ($)", f"{summary.average_daily_cost:.2f}")
        table.add_row("Average core hour ($)", f"{summary.average_hourly_core_cost:.4f}")
        self.console.print(table)

    def report_records(self, records: List[CostRecord], title: str = "FinKube Cost Report") -> None:
        """Displays one row per entity and timestamp."""
        if not records:
            self.console.print("No data to report.", style="yellow")
            return

        table = Table(title=title, header_style="bold magenta", show_lines=False)
        table.add_column("Time", style="magenta")
        table.add_column("Entity", style="cyan")
        table.add_column("Cost ($)", style="green", justify="right")
        table.add_column("Pods", justify="right")
        table.add_column("CPU Req (cores)", style="blue", justify="right")
        table.add_column("CPU Use (cores)", style="blue", justify="right")
        table.add_column("Mem Req (GiB)", style="blue", justify="right")
        table.add_column("Mem Use (GiB)", style="blue", justify="right")

        for record in records:
            key = record.key
            if key.kind == EntityKind.CLUSTER:
                entity = key.cluster_id
            elif key.kind == EntityKind.WORKLOAD:
                entity = f"{key.namespace}/{key.workload_type}/{key.name}"
            elif key.kind == EntityKind.NAMESPACE:
                entity = key.namespace
            else:
                entity = f"{key.namespace}/{key.name}"
            table.add_row(
                _format_ts(record.timestamp),
                entity,
                f"{record.total_cost:.4f}",
                f"{record.pod_count:.1f}",
                f"{record.cpu_request:.2f}",
                f"{record.cpu_core_usage:.2f}",
                f"{record.ram_request:.2f}",
                f"{record.ram_gib_usage:.2f}",
            )
        self.console.print(table)
