"""Cache de sesiones por sitio con refresco por expiración.

Cada sitio tiene como mucho una entrada: una `asyncio.Task` compartida que
resuelve a un `SiteToken`. Mientras la task está en vuelo, todos los que
piden el mismo sitio esperan esa misma task (single-flight). La inserción
ocurre sin `await` entre el lookup y el alta, así que es atómica dentro del
event loop.

- Task fallida o cancelada: se desaloja en su callback de fin; el siguiente
  llamador reintenta desde cero.
- Entrada expirada: se desaloja (solo si sigue siendo la misma task) y se
  vuelve al lookup, que arranca un único fetch nuevo.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import httpx
import structlog

from core.domain.models import SiteToken
from core.interfaces.auth import SiteTokenFetcher

logger = structlog.get_logger(__name__)

DEFAULT_TOKEN_VALIDITY = timedelta(hours=3 * 24 - 1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def site_key(site_url: str) -> str:
    """Clave normalizada: esquema + host + puerto, sin path ni barra final."""

    url = httpx.URL(site_url)
    if not url.host:
        raise ValueError(f"Site URL without host: {site_url!r}")
    port = f":{url.port}" if url.port else ""
    return f"{url.scheme}://{url.host}{port}"


class SiteTokenCache:
    """Cache en memoria `sitio -> SiteToken` con fetch single-flight."""

    def __init__(
        self,
        fetcher: SiteTokenFetcher,
        *,
        validity: timedelta = DEFAULT_TOKEN_VALIDITY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._fetcher = fetcher
        self._validity = validity
        self._clock = clock
        self._tokens: dict[str, asyncio.Task[SiteToken]] = {}

    def __contains__(self, site_url: str) -> bool:
        return site_key(site_url) in self._tokens

    async def get_site_token(self, site_url: str) -> SiteToken:
        key = site_key(site_url)
        while True:
            task = self._tokens.get(key)
            if task is None:
                logger.debug("token_cache_miss", site=key)
                task = asyncio.ensure_future(self._fetch(site_url))
                task.add_done_callback(lambda done, key=key: self._on_fetch_done(key, done))
                self._tokens[key] = task

            # shield: cancelar a un llamador no cancela el fetch que comparten otros.
            token = await asyncio.shield(task)
            if not token.is_expired(self._clock()):
                return token

            logger.info("token_cache_expired", site=key, expired_at=token.expires_at.isoformat())
            if self._tokens.get(key) is task:
                del self._tokens[key]

    def invalidate(self, site_url: str) -> bool:
        """Descarta la entrada de un sitio; devuelve si existía."""

        return self._tokens.pop(site_key(site_url), None) is not None

    async def _fetch(self, site_url: str) -> SiteToken:
        token = await self._fetcher.fetch_site_token(site_url)
        expires_at = self._clock() + self._validity
        logger.info("token_fetched", site=site_key(site_url), expires_at=expires_at.isoformat())
        return SiteToken(token=token, expires_at=expires_at)

    def _on_fetch_done(self, key: str, task: asyncio.Task[SiteToken]) -> None:
        if task.cancelled():
            error: BaseException | None = asyncio.CancelledError()
        else:
            # Marca la excepción como recuperada aunque nadie la espere ya.
            error = task.exception()
        if error is None:
            return
        if self._tokens.get(key) is task:
            del self._tokens[key]
        logger.warning("token_fetch_failed", site=key, error=repr(error))
