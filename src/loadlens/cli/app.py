"""Typer application behind the ``loadlens`` console script."""

from __future__ import annotations

import typer

from loadlens import __version__
from loadlens.cli.dashboard import dashboard_cmd
from loadlens.cli.report import report_cmd
from loadlens.cli.users import users_cmd

app = typer.Typer(
    name="loadlens",
    help="Turn k6 NDJSON output into an HTML report, a console summary or a live dashboard.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
)

_COMMANDS = (
    ("report", report_cmd, "Aggregate a results file into an HTML report."),
    ("dashboard", dashboard_cmd, "Serve a live dashboard that follows a results file."),
    ("users", users_cmd, "Convert a tab-separated users file to JSON."),
)
for _name, _command, _help in _COMMANDS:
    app.command(_name, help=_help)(_command)


def _show_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"loadlens {__version__}")
    raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Print the LoadLens version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
) -> None:
    """Summarise k6 load-test results."""
