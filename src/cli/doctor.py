"""Doctor command for environment diagnostics."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import HttpxTransport
from adapters.secret_store import EnvSecretStore
from core.config import AppSettings, build_server_config, write_user_env_vars
from core.errors import FdwError
from core.hashing import hash_email
from core.services.request_builder import CredentialMode, RequestBuilder

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

_CHECK_EMAIL = "doctor@example.com"


def _check_http(builder: RequestBuilder) -> tuple[bool, str]:
    """Fetch a throwaway profile; any HTTP answer means the endpoint is reachable."""

    try:
        request = builder.build(hash_email(_CHECK_EMAIL))
        with HttpxTransport.from_config(builder.config) as transport:
            response = transport.send(request)
        return True, f"HTTP {response.status_code}"
    except FdwError as exc:
        return False, exc.message


@app.command()
def run(
    offline: bool = typer.Option(False, "--offline", help="Skip the connectivity check."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="gravatar-fdw Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    try:
        config = build_server_config(settings=settings)
    except FdwError as exc:
        table.add_row("Settings", "FAIL", exc.message)
        _console.print(table)
        raise typer.Exit(code=1) from exc

    table.add_row("API URL", "OK", config.api_url)
    table.add_row("Retries", "OK", f"{config.max_attempts} attempts, {config.backoff_base_seconds}s base backoff")

    builder = RequestBuilder(config, EnvSecretStore())
    credential_ok = True
    try:
        builder.resolve_credential()
        mode = builder.credential_mode
        if mode is CredentialMode.ANONYMOUS:
            table.add_row("API key", "OPTIONAL", "No key set -> public access, lower rate limits")
        else:
            table.add_row("API key", "OK", f"Resolved ({mode.value})")
    except FdwError as exc:
        credential_ok = False
        table.add_row("API key", "FAIL", exc.message)

    ok_http = True
    if not offline and credential_ok:
        ok_http, detail_http = _check_http(builder)
        table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)

    if not credential_ok or not ok_http:
        raise typer.Exit(code=1)


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores options in the user config .env)."""

    settings = AppSettings()
    api_url = typer.prompt("API URL", default=settings.api_url, show_default=True).strip()
    api_key = typer.prompt(
        "API key (leave empty for public access)",
        default="",
        show_default=False,
        hide_input=True,
    ).strip()

    if not api_url.startswith(("http://", "https://")):
        raise typer.BadParameter("API URL must start with http:// or https://")

    env_path = write_user_env_vars(
        {
            "GRAVATAR_FDW_API_URL": api_url,
            "GRAVATAR_FDW_API_KEY": api_key or None,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
