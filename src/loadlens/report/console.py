"""Rich console summary of an aggregated result."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table

from loadlens.metrics.models import CounterSummary, RateSummary, TrendSummary

if TYPE_CHECKING:
    from rich.console import Console

    from loadlens.metrics.models import AggregatedResult


def _ms(value: float | None) -> str:
    return f"{value:.2f}ms" if value is not None else "0ms"


def _two_column_table(title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    return table


def print_summary(result: AggregatedResult, console: Console) -> None:
    """Print the load-test summary as Rich tables.

    Args:
        result: Snapshot to summarise.
        console: Console to print to.
    """
    http_reqs = result.metric("http_reqs")
    http_failed = result.metric("http_req_failed")
    duration = result.metric("http_req_duration")
    checks = result.metric("checks")

    duration_summary = duration if isinstance(duration, TrendSummary) else TrendSummary()
    checks_summary = checks if isinstance(checks, RateSummary) else RateSummary()

    http = _two_column_table("HTTP Requests")
    http.add_row("Total requests", str(http_reqs.count if isinstance(http_reqs, CounterSummary) else 0))
    http.add_row("Failed requests", str(http_failed.passes if isinstance(http_failed, RateSummary) else 0))
    http.add_row("Average response time", _ms(duration_summary.avg))
    http.add_row("95th percentile", _ms(duration_summary.p95))
    console.print(http)

    checks_table = _two_column_table("Checks")
    checks_table.add_row("Passed checks", str(checks_summary.passes))
    checks_table.add_row("Failed checks", str(checks_summary.fails))
    checks_table.add_row("Success rate", f"{checks_summary.rate * 100:.2f}%")
    console.print(checks_table)

    load = _two_column_table("Load Testing")
    load.add_row("Virtual users max", str(result.root_info.max_virtual_users))
    load.add_row("Iterations completed", str(result.root_info.iteration_count))
    console.print(load)

    if result.errored_urls:
        console.print()
        console.print("[bold red]Failed Request URLs[/bold red]")
        for error in result.errored_urls:
            console.print(
                f"[{error.endpoint}] {error.url} - Status: {error.status} ({error.count} occurrences)",
                markup=False,
                highlight=False,
            )
