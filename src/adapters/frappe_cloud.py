"""Cliente de la autoridad de sesiones (Frappe Cloud).

Implementa `core.interfaces.auth.SiteTokenFetcher`:
- POST al endpoint de login con `{"name": <host del sitio>}`.
- Header `Authorization: Token <cloud_token>` (con T mayúscula).
- La sesión viaja en `message.sid`.

Cualquier fallo (HTTP, JSON, forma) se reporta como `AuthFailure`
encadenando la causa original.
"""

from __future__ import annotations

import httpx
import structlog

from adapters.http_client import build_async_client, send_json, to_request_body
from core.config import DEFAULT_CLOUD_LOGIN_URL, AppSettings
from core.errors import AuthFailure, FrappeClientError
from core.interfaces.auth import SiteTokenFetcher

logger = structlog.get_logger(__name__)


class FrappeCloudClient(SiteTokenFetcher):
    """Intercambia el token de Frappe Cloud por sesiones de sitio."""

    def __init__(
        self,
        cloud_token: str,
        *,
        login_url: str = DEFAULT_CLOUD_LOGIN_URL,
        client: httpx.AsyncClient | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        self._cloud_token = cloud_token
        self._login_url = login_url
        self._owns_client = client is None
        self._client = client or build_async_client(settings)

    async def __aenter__(self) -> "FrappeCloudClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_site_token(self, site_url: str) -> str:
        host = httpx.URL(site_url).host
        if not host:
            raise AuthFailure(f"Site URL without host: {site_url!r}", site_url=site_url)

        try:
            payload = await send_json(
                self._client,
                "POST",
                self._login_url,
                headers={"Authorization": f"Token {self._cloud_token}"},
                content=to_request_body({"name": host}),
            )
        except FrappeClientError as exc:
            raise AuthFailure(f"Site login rejected for {host}: {exc}", site_url=site_url) from exc

        message = payload.get("message")
        sid = message.get("sid") if isinstance(message, dict) else None
        if not isinstance(sid, str) or not sid.strip():
            raise AuthFailure(f"Site login for {host} returned no `message.sid`", site_url=site_url)

        logger.debug("site_login_ok", host=host)
        return sid.strip()
