"""``loadlens users`` — convert a tab-separated users file to JSON."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from loadlens.users import convert_users_file

console = Console(stderr=True)


def users_cmd(
    source: Path = typer.Argument(
        Path("users.txt"),
        help="Tab-separated users file with a header row.",
        dir_okay=False,
    ),
    output: Path = typer.Option(
        Path("users.json"),
        "--output",
        "-o",
        help="JSON file to write.",
        dir_okay=False,
    ),
) -> None:
    """Convert test-user credentials from TSV to JSON."""
    if not source.is_file():
        console.print(f"[red]Users file not found:[/red] {source}")
        raise typer.Exit(code=1)

    count = convert_users_file(source, output)
    console.print(f"[green]Successfully converted {count} users from {source} to {output}[/green]")
