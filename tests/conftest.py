"""Pytest fixtures: fake Frappe site and authority on top of httpx.MockTransport."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest
import pytest_asyncio
import structlog

from adapters.http_client import build_async_client
from core.config import AppSettings

SITE_URL = "https://erp.example.com"


class FakeSite:
    """Serves `/api/resource/<type>` slices from in-memory collections."""

    def __init__(self, collections: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.collections = collections or {}
        self.requests: list[httpx.Request] = []
        self.failures: dict[str, int] = {}
        self.broken: dict[str, Any] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        resource = request.url.path.removeprefix("/api/resource/")
        if resource in self.failures:
            return httpx.Response(self.failures[resource], json={"exc_type": "PermissionError"})
        if resource in self.broken:
            return httpx.Response(200, json=self.broken[resource])

        start = int(request.url.params["limit_start"])
        limit = int(request.url.params["limit"])
        rows = self.collections.get(resource, [])[start : start + limit]
        return httpx.Response(200, json={"data": rows})

    def requests_for(self, resource: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"/api/resource/{resource}"]


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings(tmp_path, monkeypatch) -> AppSettings:
    monkeypatch.chdir(tmp_path)
    return AppSettings(site_url=SITE_URL, api_token="key:secret")


@pytest.fixture
def fake_site() -> FakeSite:
    return FakeSite()


@pytest_asyncio.fixture
async def site_client(fake_site: FakeSite, settings: AppSettings):
    async with build_async_client(settings, transport=httpx.MockTransport(fake_site.handler)) as client:
        yield client


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def doc_type_row(name: str, module: str = "Core", **extra: Any) -> dict[str, Any]:
    return {"name": name, "module": module, **extra}


def field_row(name: str, parent: str, idx: int = 0, **extra: Any) -> dict[str, Any]:
    return {
        "name": name,
        "parent": parent,
        "fieldname": name.lower().replace(" ", "_"),
        "fieldtype": "Data",
        "idx": idx,
        **extra,
    }


def custom_field_row(name: str, dt: str, idx: int = 0, **extra: Any) -> dict[str, Any]:
    return {
        "name": name,
        "dt": dt,
        "fieldname": name.lower().replace(" ", "_").replace("-", "_"),
        "fieldtype": "Data",
        "idx": idx,
        **extra,
    }


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
