"""CLI principal (Typer).

Es el único lugar que lee `AppSettings`: resuelve sitio y credenciales,
construye los servicios del Core y presenta resultados con Rich.
"""

from __future__ import annotations

import asyncio
import json
from datetime import timedelta
from pathlib import Path

import httpx
import typer
from rich.console import Console

from adapters.frappe_cloud import FrappeCloudClient
from adapters.http_client import build_async_client
from adapters.info_loader import load_doc_type_infos
from adapters.site_auth import CloudSessionAuth, StaticTokenAuth
from cli import doctor
from cli.ui_components import build_doc_types_table, build_fields_table, print_banner
from core.config import AppSettings
from core.domain.models import DocType, DocTypeInfo, SiteToken
from core.errors import FrappeClientError
from core.interfaces.auth import SiteAuthenticator
from core.logs import configure_logging
from core.services.doctypes import DocTypeService
from core.services.token_cache import SiteTokenCache

app = typer.Typer(no_args_is_help=True, help="Read DocType definitions from Frappe sites.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def build_site_auth(settings: AppSettings, client: httpx.AsyncClient) -> SiteAuthenticator:
    """Token de usuario si existe; si no, sesión vía Frappe Cloud."""

    if settings.api_token:
        return StaticTokenAuth(settings.api_token)
    if settings.cloud_token:
        fetcher = FrappeCloudClient(
            settings.cloud_token,
            login_url=settings.cloud_login_url,
            client=client,
        )
        cache = SiteTokenCache(fetcher, validity=timedelta(hours=settings.token_validity_hours))
        return CloudSessionAuth(cache)
    raise typer.BadParameter(
        "No credentials: set FRAPPE_DOCTYPES_API_TOKEN or FRAPPE_DOCTYPES_CLOUD_TOKEN "
        "(or run `doctor setup`)."
    )


async def fetch_doc_types(
    settings: AppSettings,
    site_url: str,
    infos: list[DocTypeInfo],
) -> list[DocType]:
    async with build_async_client(settings) as client:
        auth = build_site_auth(settings, client)
        service = DocTypeService(
            site_url,
            auth,
            client=client,
            batch_size=settings.batch_size,
            max_concurrency=settings.max_concurrency,
            duplicate_policy=settings.duplicate_info_policy,
        )
        return await service.get_doc_types(infos)


async def fetch_site_token(settings: AppSettings, site_url: str) -> SiteToken:
    if not settings.cloud_token:
        raise typer.BadParameter("FRAPPE_DOCTYPES_CLOUD_TOKEN is not set.")
    async with FrappeCloudClient(
        settings.cloud_token,
        login_url=settings.cloud_login_url,
        settings=settings,
    ) as fetcher:
        cache = SiteTokenCache(fetcher, validity=timedelta(hours=settings.token_validity_hours))
        return await cache.get_site_token(site_url)


def _resolve_site(settings: AppSettings, site: str | None) -> str:
    site_url = site or settings.site_url
    if not site_url:
        raise typer.BadParameter("No site: pass --site or set FRAPPE_DOCTYPES_SITE_URL.")
    return site_url


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level, json_output=settings.log_json)


@app.command()
def doctypes(
    site: str | None = typer.Option(None, "--site", "-s", help="Site base URL."),
    info: Path | None = typer.Option(None, "--info", help="JSON file with DocTypeInfo entries."),
    module: str | None = typer.Option(None, "--module", "-m", help="Only DocTypes of this module."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """List every DocType of a site with its field counts."""

    settings = AppSettings()
    site_url = _resolve_site(settings, site)

    try:
        infos = load_doc_type_infos(info) if info else []
        result = asyncio.run(fetch_doc_types(settings, site_url, infos))
    except FrappeClientError as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if module:
        result = [doc_type for doc_type in result if doc_type.module == module]

    if as_json:
        payload = [doc_type.model_dump(mode="json") for doc_type in result]
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    print_banner(_console)
    _console.print(build_doc_types_table(result, title=f"DocTypes @ {site_url}"))


@app.command()
def show(
    name: str = typer.Argument(..., help="DocType name, e.g. 'Sales Invoice'."),
    site: str | None = typer.Option(None, "--site", "-s", help="Site base URL."),
) -> None:
    """Show the fields (standard and custom) of one DocType."""

    settings = AppSettings()
    site_url = _resolve_site(settings, site)

    try:
        result = asyncio.run(fetch_doc_types(settings, site_url, []))
    except FrappeClientError as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    match = next((doc_type for doc_type in result if doc_type.name == name), None)
    if match is None:
        _console.print(f"[yellow]DocType not found:[/yellow] {name}")
        raise typer.Exit(code=1)
    _console.print(build_fields_table(match))


@app.command(name="site-token")
def site_token(
    site: str = typer.Argument(..., help="Site base URL."),
) -> None:
    """Obtain a session for a site through Frappe Cloud."""

    settings = AppSettings()
    try:
        token = asyncio.run(fetch_site_token(settings, site))
    except FrappeClientError as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _console.print(f"[green]Session OK[/green] for {site}; valid until {token.expires_at.isoformat()}")


def run() -> None:
    app()
