"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y límites de conexión para el sitio y la
  autoridad de tokens.
- Traduce los fallos de httpx/JSON a errores tipados del Core
  (`TransportFailure`, `DecodeFailure`) en un único lugar.
- Facilita testeo: se inyecta un `httpx.MockTransport`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from core.config import AppSettings
from core.errors import DecodeFailure, TransportFailure

logger = structlog.get_logger(__name__)


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que sitio y autoridad se comporten igual.
    - El pool de conexiones queda acotado por `max_concurrency`.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        limits=httpx.Limits(max_connections=settings.max_concurrency),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def build_url(
    base_url: str | httpx.URL,
    *segments: str,
    params: Mapping[str, str | int] | None = None,
) -> httpx.URL:
    """Añade segmentos de path y query params a una URL base.

    Los segmentos van sin codificar ("Custom Field"); httpx los escapa.
    """

    url = httpx.URL(str(base_url))
    path = url.path.rstrip("/")
    for segment in segments:
        cleaned = segment.strip("/")
        if cleaned:
            path = f"{path}/{cleaned}"
    url = url.copy_with(path=path or "/")
    if params:
        url = url.copy_merge_params({k: str(v) for k, v in params.items()})
    return url


def to_request_body(value: Any) -> bytes:
    """Serializa un valor estructurado como cuerpo JSON UTF-8."""

    return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def get_json_if_successful_or_raise(response: httpx.Response, expected: type = dict) -> Any:
    """Devuelve el JSON de una respuesta 2xx o lanza un error tipado."""

    url = str(response.request.url)
    if not response.is_success:
        raise TransportFailure(
            f"HTTP {response.status_code} from {url}",
            url=url,
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise DecodeFailure(f"Invalid JSON from {url}") from exc

    if not isinstance(payload, expected):
        raise DecodeFailure(
            f"Expected JSON {expected.__name__} from {url}, got {type(payload).__name__}"
        )
    return payload


async def send_json(
    client: httpx.AsyncClient,
    method: str,
    url: str | httpx.URL,
    *,
    expected: type = dict,
    headers: Mapping[str, str] | None = None,
    content: bytes | None = None,
) -> Any:
    """Ejecuta una petición y devuelve el JSON decodificado del tipo esperado."""

    if content is not None:
        headers = {"Content-Type": "application/json", **(headers or {})}
    try:
        response = await client.request(method, url, headers=headers, content=content)
    except httpx.HTTPError as exc:
        logger.warning("http_request_failed", method=method, url=str(url), error=str(exc))
        raise TransportFailure(f"{method} {url} failed: {exc}", url=str(url)) from exc

    logger.debug("http_response", method=method, url=str(url), status_code=response.status_code)
    return get_json_if_successful_or_raise(response, expected)
