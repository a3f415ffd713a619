"""``loadlens report`` — aggregate a results file into HTML and console reports."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from loadlens._internal.config import load_config
from loadlens._internal.errors import LoadLensError, ResultsNotFoundError
from loadlens._internal.logging import level_for, setup_logging
from loadlens.metrics.aggregator import aggregate_file
from loadlens.report.console import print_summary
from loadlens.report.html import write_html_report

console = Console(stderr=True)

SUMMARY_JSON_FILENAME = "results-summary.json"


def report_cmd(
    results_file: Path | None = typer.Argument(
        None,
        help="NDJSON results file (default: $LOADLENS_RESULTS or results.json).",
        dir_okay=False,
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for report.html (default: $LOADLENS_REPORT_DIR or reports).",
        file_okay=False,
    ),
    write_json: bool = typer.Option(
        False,
        "--json",
        help=f"Also write the aggregated result as {SUMMARY_JSON_FILENAME}.",
    ),
    no_summary: bool = typer.Option(
        False,
        "--no-summary",
        help="Skip the console summary.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
) -> None:
    """Aggregate a results file and write the HTML report."""
    try:
        config = load_config()
    except LoadLensError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    setup_logging(level_for(verbose=verbose), json_format=config.log_format == "json")

    source = results_file or config.results_path
    report_dir = output_dir or config.report_dir
    try:
        result = aggregate_file(source)
    except ResultsNotFoundError as exc:
        console.print(f"[red]Error:[/red] {exc}. Run the load test first.")
        raise typer.Exit(code=1) from exc
    except LoadLensError as exc:
        console.print(f"[red]Error processing results:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    try:
        report_path = write_html_report(result, report_dir)
        console.print(f"[green]HTML report generated:[/green] {report_path}")

        if write_json:
            json_path = report_dir / SUMMARY_JSON_FILENAME
            json_path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
            console.print(f"[green]Aggregated JSON written:[/green] {json_path}")
    except OSError as exc:
        console.print(f"[red]Error:[/red] could not write report to {report_dir}: {exc}")
        raise typer.Exit(code=1) from exc

    if not no_summary:
        print_summary(result, console)
