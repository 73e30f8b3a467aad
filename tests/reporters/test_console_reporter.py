# tests/reporters/test_console_reporter.py

from rich.console import Console

from finkube.models.cost import CostRecord, EntityKey, EntityKind
from finkube.reporters.console_reporter import ConsoleReporter


def make_reporter():
    console = Console(record=True, width=200)
    return ConsoleReporter(console=console), console


def test_report_records_names_entities():
    """Each record is rendered with a readable entity name and its cost."""
    reporter, console = make_reporter()
    records = [
        CostRecord(
            key=EntityKey(
                kind=EntityKind.WORKLOAD, cluster_id="c1", namespace="shop", workload_type="deployment", name="web"
            ),
            timestamp=1777593600,
            total_cost=0.4321,
            pod_count=2,
        ),
        CostRecord(key=EntityKey(kind=EntityKind.NAMESPACE, cluster_id="c1", namespace="blog"), timestamp=1777593600),
    ]

    reporter.report_records(records, title="Workloads")

    output = console.export_text()
    assert "shop/deployment/web" in output
    assert "0.4321" in output
    assert "blog" in output


def test_report_records_empty():
    """An empty result prints a notice instead of an empty table."""
    reporter, console = make_reporter()

    reporter.report_records([])

    assert "No data to report." in console.export_text()
