"""Paginación por offset sobre `/api/resource/<DocType>`.

Cada página pide `limit_start = i * batch_size` y `limit = batch_size`.
La paginación termina con la primera página corta (menos de `batch_size`
filas, vacía incluida); esa página también cuenta. Las páginas de un mismo
recurso son secuenciales; recursos distintos pueden cargarse en paralelo
sobre el mismo `BatchLoader`, acotados por `max_concurrency`.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from collections.abc import AsyncIterator, Mapping
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from adapters.http_client import build_url, send_json
from core.domain.models import serial_names
from core.errors import DecodeFailure
from core.interfaces.auth import SiteAuthenticator

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def to_filter_list(names: list[str]) -> str:
    """`["a","b"]`: formato que espera el parámetro `fields` de Frappe."""

    unique = list(dict.fromkeys(names))
    return "[" + ",".join(f'"{name}"' for name in unique) + "]"


def _identity(record: dict[str, Any]) -> str:
    return json.dumps(record, sort_keys=True, default=str)


class BatchLoader:
    """Carga todas las páginas de un tipo de recurso de un sitio.

    `max_concurrency` acota las páginas en vuelo de todos los recursos que
    comparten este loader. `DocTypeService` nunca pasa de tres a la vez; el
    límite importa a quien reutiliza el loader para cargas adicionales.
    """

    def __init__(
        self,
        site_url: str,
        auth: SiteAuthenticator,
        client: httpx.AsyncClient,
        *,
        max_concurrency: int = 8,
    ) -> None:
        self._site_url = site_url
        self._auth = auth
        self._client = client
        self._sem = asyncio.Semaphore(max(1, max_concurrency))

    async def iter_pages(
        self,
        resource_type: str,
        batch_size: int,
        params: Mapping[str, str] | None = None,
    ) -> AsyncIterator[list[dict[str, Any]]]:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        for idx in itertools.count():
            query: dict[str, str] = {
                "limit_start": str(idx * batch_size),
                "limit": str(batch_size),
            }
            query.update(params or {})
            url = build_url(self._site_url, "api", "resource", resource_type, params=query)

            async with self._sem:
                headers = {"Authorization": await self._auth.authorization(self._site_url)}
                payload = await send_json(self._client, "GET", url, headers=headers)

            rows = payload.get("data")
            if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
                raise DecodeFailure(f"{resource_type}: expected a `data` array of objects")

            logger.debug(
                "batch_page_loaded",
                resource=resource_type,
                page=idx,
                limit_start=idx * batch_size,
                count=len(rows),
            )
            yield rows
            if len(rows) < batch_size:
                break

    async def load_batches(
        self,
        resource_type: str,
        batch_size: int,
        params: Mapping[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """Todas las filas del recurso, deduplicadas, en orden de llegada."""

        seen: dict[str, dict[str, Any]] = {}
        pages = 0
        async for rows in self.iter_pages(resource_type, batch_size, params):
            pages += 1
            for row in rows:
                seen.setdefault(_identity(row), row)

        logger.info("batches_loaded", resource=resource_type, pages=pages, records=len(seen))
        return list(seen.values())

    async def load_records(
        self,
        model: type[RecordT],
        resource_type: str,
        batch_size: int,
        params: Mapping[str, str] | None = None,
    ) -> set[RecordT]:
        """Como `load_batches`, proyectando los campos del modelo y decodificando."""

        query = {"fields": to_filter_list(serial_names(model)), **(params or {})}
        rows = await self.load_batches(resource_type, batch_size, query)
        try:
            return {model.model_validate(row) for row in rows}
        except ValidationError as exc:
            raise DecodeFailure(f"{resource_type}: invalid {model.__name__} record: {exc}") from exc
