"""CLI (Typer) for running profile scans outside the host engine.

The commands drive the same `GravatarFdw` the host uses, so a `lookup` here
goes through predicate validation, hashing, the retry policy and the row
mapper exactly like a query would.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.fdw import GravatarFdw
from adapters.json_exporter import export_row_json, row_to_payload
from cli.doctor import app as doctor_app
from cli.ui_components import build_columns_table, build_profile_table, print_banner
from core.config import AppSettings
from core.errors import FdwError
from core.hashing import hash_email, normalize_email

app = typer.Typer(no_args_is_help=True, help="Gravatar profiles as a read-only foreign table.")
app.add_typer(doctor_app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (DEBUG, INFO, WARNING)."),
) -> None:
    configure_logging(log_level or AppSettings().log_level)


@app.command(name="hash")
def hash_command(email: str = typer.Argument(..., help="Email to hash.")) -> None:
    """Print the address hash used to look up EMAIL."""

    _console.print(hash_email(email))


@app.command()
def columns() -> None:
    """Show the fixed column set of the profiles table."""

    _console.print(build_columns_table())


@app.command()
def lookup(
    email: str = typer.Argument(..., help="Email address of the profile."),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Override the profiles endpoint."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="API key (prefer GRAVATAR_FDW_API_KEY)."),
    api_key_id: Optional[str] = typer.Option(None, "--api-key-id", help="Secret store reference for the API key."),
    as_json: bool = typer.Option(False, "--json", help="Print the row as JSON."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the row to a JSON file."),
    no_banner: bool = typer.Option(False, "--no-banner", help="Skip the banner."),
) -> None:
    """Fetch the profile row for EMAIL."""

    options = {"api_url": api_url, "api_key": api_key, "api_key_id": api_key_id}
    try:
        with GravatarFdw({k: v for k, v in options.items() if v}) as fdw:
            row = fdw.lookup(email)
    except FdwError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if row is None:
        _err_console.print(f"[yellow]No public profile for[/yellow] {normalize_email(email)}")
        raise typer.Exit(code=0)

    if output is not None:
        path = export_row_json(row=row, output_path=output)
        _err_console.print(f"[green]Saved row to:[/green] {path}")

    if as_json:
        typer.echo(json.dumps(row_to_payload(row), ensure_ascii=False, indent=2))
        return

    if not no_banner:
        print_banner(_console)
    _console.print(build_profile_table(row))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
