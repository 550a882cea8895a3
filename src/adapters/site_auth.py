"""Estrategias de autenticación contra un sitio.

Ambas producen `Authorization: token <valor>`; cambia de dónde sale el valor:
- `StaticTokenAuth`: token de usuario fijo (`api_key:api_secret`).
- `CloudSessionAuth`: sesión emitida por la autoridad y cacheada por sitio.
"""

from __future__ import annotations

from core.interfaces.auth import SiteAuthenticator
from core.services.token_cache import SiteTokenCache


class StaticTokenAuth(SiteAuthenticator):
    def __init__(self, api_token: str) -> None:
        if not api_token:
            raise ValueError("api_token is required")
        self._api_token = api_token

    async def authorization(self, site_url: str) -> str:
        return f"token {self._api_token}"


class CloudSessionAuth(SiteAuthenticator):
    """Pide (o reutiliza) la sesión del sitio en cada petición."""

    def __init__(self, cache: SiteTokenCache) -> None:
        self._cache = cache

    async def authorization(self, site_url: str) -> str:
        site_token = await self._cache.get_site_token(site_url)
        return f"token {site_token.token}"
