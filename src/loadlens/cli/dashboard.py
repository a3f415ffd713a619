"""``loadlens dashboard`` — serve the live dashboard for a results file."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from loadlens._internal.config import load_config
from loadlens._internal.errors import LoadLensError
from loadlens._internal.logging import level_for, setup_logging
from loadlens.live.server import run_dashboard

console = Console(stderr=True)


def dashboard_cmd(
    results_file: Path | None = typer.Argument(
        None,
        help="NDJSON results file to watch (default: $LOADLENS_RESULTS or results.json).",
        dir_okay=False,
    ),
    host: str | None = typer.Option(
        None,
        "--host",
        help="Interface to bind (default: $LOADLENS_HOST or 127.0.0.1).",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port for the dashboard server (default: $LOADLENS_PORT or 3000).",
        min=1,
        max=65535,
    ),
    poll_interval: float | None = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between results-file checks (default: 0.5).",
        min=0.01,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
) -> None:
    """Watch a results file and push live updates to the dashboard."""
    try:
        config = load_config()
    except LoadLensError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    setup_logging(level_for(verbose=verbose), json_format=config.log_format == "json")

    overrides = {
        "results_path": results_file,
        "dashboard_host": host,
        "dashboard_port": port,
        "poll_interval": poll_interval,
    }
    config = dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})

    console.print(
        Panel(
            f"[bold]Results:[/bold]   {config.results_path}\n"
            f"[bold]Dashboard:[/bold] http://{config.dashboard_host}:{config.dashboard_port}\n"
            f"[bold]Polling:[/bold]   every {config.poll_interval}s",
            title="LoadLens Live",
            border_style="cyan",
        )
    )
    run_dashboard(config)
