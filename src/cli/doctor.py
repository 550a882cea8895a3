"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client, build_url
from core.config import AppSettings, get_user_env_file, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="frappe-doctypes Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Config file", "OK" if get_user_env_file().exists() else "OPTIONAL", str(get_user_env_file()))

    if settings.site_url:
        table.add_row("Site URL", "OK", settings.site_url)
    else:
        table.add_row("Site URL", "MISSING", "Pass --site or set FRAPPE_DOCTYPES_SITE_URL")

    if settings.api_token:
        table.add_row("Credentials", "OK", "User API token")
    elif settings.cloud_token:
        table.add_row("Credentials", "OK", f"Frappe Cloud sessions via {settings.cloud_login_url}")
    else:
        table.add_row("Credentials", "MISSING", "Run `doctor setup`")

    table.add_row("Batch size", "OK", str(settings.batch_size))
    table.add_row("Duplicate info", "OK", settings.duplicate_info_policy.label())

    # Connectivity (best-effort)
    if settings.site_url:
        ping = str(build_url(settings.site_url, "api", "method", "ping"))
        ok_http, detail_http = asyncio.run(_check_http(ping, settings))
        table.add_row("Site connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)


@app.command()
def setup() -> None:
    """Interactive setup (stores site and tokens in the user config .env)."""

    site_url = typer.prompt("Site URL", default="", show_default=False).strip()
    mode = typer.prompt("Auth mode (token/cloud)", default="token", show_default=True).strip().lower()
    if mode not in ("token", "cloud"):
        raise typer.BadParameter("auth mode must be 'token' or 'cloud'")

    secret = typer.prompt(
        "API token (api_key:api_secret)" if mode == "token" else "Frappe Cloud token",
        hide_input=True,
    ).strip()
    if not secret:
        raise typer.BadParameter("a token is required")

    key = "FRAPPE_DOCTYPES_API_TOKEN" if mode == "token" else "FRAPPE_DOCTYPES_CLOUD_TOKEN"
    env_path = write_user_env_vars(
        {
            "FRAPPE_DOCTYPES_SITE_URL": site_url or None,
            key: secret,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
