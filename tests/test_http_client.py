"""Tests for the httpx helpers (URL building, JSON bodies, typed failures)."""

from __future__ import annotations

import json

import httpx
import pytest

from adapters.http_client import (
    build_async_client,
    build_url,
    get_json_if_successful_or_raise,
    send_json,
    to_request_body,
)
from core.config import AppSettings
from core.errors import DecodeFailure, TransportFailure


def _client(handler) -> httpx.AsyncClient:
    return build_async_client(AppSettings(), transport=httpx.MockTransport(handler))


class TestBuildUrl:
    def test_appends_segments_and_params(self):
        url = build_url("https://erp.example.com", "api", "resource", "DocType", params={"limit": 10})

        assert url.path == "/api/resource/DocType"
        assert url.params["limit"] == "10"

    def test_keeps_base_path_and_encodes_spaces(self):
        url = build_url("https://example.com/erp/", "api/resource", "Custom Field")

        assert url.path == "/erp/api/resource/Custom Field"
        assert "Custom%20Field" in str(url)

    def test_no_segments(self):
        assert build_url("https://example.com").path == "/"


def test_to_request_body_is_compact_utf8_json():
    body = to_request_body({"name": "erp.example.com", "ñ": 1})

    assert isinstance(body, bytes)
    assert json.loads(body.decode("utf-8")) == {"name": "erp.example.com", "ñ": 1}
    assert b" " not in body


def test_get_json_rejects_non_success_status():
    response = httpx.Response(403, json={}, request=httpx.Request("GET", "https://x.test/a"))

    with pytest.raises(TransportFailure) as excinfo:
        get_json_if_successful_or_raise(response)
    assert excinfo.value.status_code == 403
    assert excinfo.value.url == "https://x.test/a"


@pytest.mark.asyncio
async def test_send_json_returns_payload():
    async with _client(lambda request: httpx.Response(200, json={"data": []})) as client:
        payload = await send_json(client, "GET", "https://x.test/api")

    assert payload == {"data": []}


@pytest.mark.asyncio
async def test_send_json_sets_content_type_for_bodies():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    async with _client(handler) as client:
        await send_json(client, "POST", "https://x.test/login", content=to_request_body({"a": 1}))

    assert seen[0].headers["Content-Type"] == "application/json"
    assert json.loads(seen[0].content) == {"a": 1}


@pytest.mark.asyncio
async def test_send_json_invalid_json_is_decode_failure():
    async with _client(lambda request: httpx.Response(200, content=b"<html>")) as client:
        with pytest.raises(DecodeFailure):
            await send_json(client, "GET", "https://x.test/api")


@pytest.mark.asyncio
async def test_send_json_wrong_shape_is_decode_failure():
    async with _client(lambda request: httpx.Response(200, json=[1, 2])) as client:
        with pytest.raises(DecodeFailure):
            await send_json(client, "GET", "https://x.test/api", expected=dict)


@pytest.mark.asyncio
async def test_send_json_network_error_is_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(TransportFailure) as excinfo:
            await send_json(client, "GET", "https://x.test/api")

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
