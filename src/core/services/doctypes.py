"""Ensamblado de DocTypes de un sitio Frappe.

Por qué un servicio aparte:
- Lanza en paralelo las tres cargas (DocType, DocField con `parent=DocType`
  y Custom Field) y solo agrupa cuando las tres terminaron: el merge ve
  siempre una vista completa.
- Si una carga falla, cancela a las hermanas, espera a que terminen y
  relanza el error; nunca devuelve resultados parciales.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator, Awaitable, Iterable
from typing import Any

import httpx
import structlog

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import (
    DocCustomFieldRaw,
    DocFieldRaw,
    DocType,
    DocTypeInfo,
    DocTypeRaw,
)
from core.domain.policy import DuplicatePolicy
from core.errors import DuplicateInfoError
from core.interfaces.auth import SiteAuthenticator
from core.services.batch_loader import BatchLoader

logger = structlog.get_logger(__name__)

DEFAULT_BATCH_SIZE = 1000


async def join_all(*aws: Awaitable[Any]) -> list[Any]:
    """Espera todo en paralelo; ante el primer error cancela el resto.

    A diferencia de un `asyncio.gather` a secas, ninguna task queda viva
    después de propagar la excepción.
    """

    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def index_infos(
    infos: Iterable[DocTypeInfo],
    policy: DuplicatePolicy = DuplicatePolicy.LAST,
) -> dict[str, DocTypeInfo]:
    """Índice `name -> info`; los nombres repetidos se resuelven según `policy`."""

    indexed: dict[str, DocTypeInfo] = {}
    for info in infos:
        if info.name in indexed:
            if policy is DuplicatePolicy.ERROR:
                raise DuplicateInfoError(f"Duplicate DocTypeInfo for {info.name!r}")
            if policy is DuplicatePolicy.FIRST:
                continue
        indexed[info.name] = info
    return indexed


def group_fields_by_parent(
    fields: Iterable[DocFieldRaw | DocCustomFieldRaw],
) -> dict[str, set[DocFieldRaw | DocCustomFieldRaw]]:
    grouped: dict[str, set[DocFieldRaw | DocCustomFieldRaw]] = defaultdict(set)
    for field in fields:
        grouped[field.parent].add(field)
    return dict(grouped)


def merge_doc_types(
    doc_types: Iterable[DocTypeRaw],
    fields: Iterable[DocFieldRaw | DocCustomFieldRaw],
    infos: dict[str, DocTypeInfo],
) -> list[DocType]:
    """Une cada DocType con sus campos y su info; ordenado por nombre."""

    grouped = group_fields_by_parent(fields)
    merged = [
        raw.to_doc_type(fields=grouped.get(raw.name, ()), info=infos.get(raw.name))
        for raw in doc_types
    ]
    merged.sort(key=lambda doc_type: doc_type.name)
    return merged


class DocTypeService:
    """Lee las definiciones de DocType de un sitio.

    Se usa como async context manager. Sin `client`, el servicio crea uno a
    partir de `settings` y lo cierra al salir; un cliente ajeno queda abierto.
    """

    def __init__(
        self,
        site_url: str,
        auth: SiteAuthenticator,
        *,
        client: httpx.AsyncClient | None = None,
        settings: AppSettings | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_concurrency: int = 8,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST,
    ) -> None:
        self.site_url = site_url
        self._auth = auth
        self._owns_client = client is None
        self._client = client or build_async_client(settings)
        self._batch_size = batch_size
        self._duplicate_policy = duplicate_policy
        self._loader = BatchLoader(site_url, auth, self._client, max_concurrency=max_concurrency)

    async def __aenter__(self) -> "DocTypeService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def loader(self) -> BatchLoader:
        return self._loader

    async def get_doc_types(self, infos: Iterable[DocTypeInfo] = ()) -> list[DocType]:
        info_map = index_infos(infos, self._duplicate_policy)
        size = self._batch_size

        doc_types, doc_fields, custom_fields = await join_all(
            self._loader.load_records(DocTypeRaw, "DocType", size),
            self._loader.load_records(DocFieldRaw, "DocField", size, {"parent": "DocType"}),
            self._loader.load_records(DocCustomFieldRaw, "Custom Field", size),
        )

        merged = merge_doc_types(doc_types, doc_fields | custom_fields, info_map)
        logger.info(
            "doc_types_assembled",
            site=self.site_url,
            doc_types=len(merged),
            fields=len(doc_fields),
            custom_fields=len(custom_fields),
            enriched=sum(1 for doc_type in merged if doc_type.info is not None),
        )
        return merged

    async def stream_doc_types(self, infos: Iterable[DocTypeInfo] = ()) -> AsyncIterator[DocType]:
        """Entrega los DocTypes de uno en uno (la carga completa va primero)."""

        for doc_type in await self.get_doc_types(infos):
            yield doc_type
