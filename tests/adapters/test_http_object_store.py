from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import httpx
import pytest

from namebridge.adapters.http_resilience import ResilientClient
from namebridge.adapters.object_store import HttpObjectStore
from namebridge.config import ResilienceConfig
from namebridge.domain.model import RemoteStoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from namebridge.domain.ports import StoredObject


BASE_URL = "https://store.example/api"


def _store(
    handler: Callable[[httpx.Request], httpx.Response],
) -> tuple[HttpObjectStore, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    async def async_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001
            base_url=BASE_URL,
            transport=httpx.MockTransport(async_handler),
        )
        return client

    resilience = ResilienceConfig(name="test-store", base_url=BASE_URL)
    return HttpObjectStore(resilience=resilience, client_factory=factory), seen


def _object(location: str, name: str) -> dict[str, str]:
    return {
        "id": location,
        "name": name,
        "createdTime": "2024-01-01T00:00:00Z",
        "modifiedTime": "2024-01-02T00:00:00Z",
    }


def test_get_reads_object_content() -> None:
    store, seen = _store(lambda request: httpx.Response(200, content=b'{"a": 1}'))

    async def run() -> bytes:
        async with store:
            return await store.get("obj/1")

    assert asyncio.run(run()) == b'{"a": 1}'
    assert seen[0].method == "GET"
    assert seen[0].url.raw_path == b"/api/objects/obj%2F1/content"


def test_put_creates_object_in_folder() -> None:
    payload = _object("o-1", "JOHN_SMITH.json")
    store, seen = _store(lambda request: httpx.Response(200, json=payload))

    async def run() -> StoredObject:
        async with store:
            return await store.put("people", b"{}", {"name": "JOHN_SMITH.json"})

    stored = asyncio.run(run())

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/folders/people/objects"
    assert request.url.params["name"] == "JOHN_SMITH.json"
    assert request.content == b"{}"
    assert request.headers["Content-Type"] == "application/json"
    assert stored.location == "o-1"
    assert stored.modified_at is not None
    assert stored.modified_at.day == 2


def test_patch_renames_when_asked() -> None:
    store, seen = _store(lambda request: httpx.Response(200, json=_object("o-1", "NEW.json")))

    async def run() -> None:
        async with store:
            await store.patch("o-1", b"[]", name="NEW.json")
            await store.patch("o-1", b"[]")

    asyncio.run(run())

    assert [request.method for request in seen] == ["PATCH", "PATCH"]
    assert seen[0].url.params["name"] == "NEW.json"
    assert "name" not in seen[1].url.params


def test_list_folder_follows_page_tokens() -> None:
    pages = {
        None: {"files": [_object("o-1", "A.json")], "nextPageToken": "next"},
        "next": {"files": [_object("o-2", "B.json")]},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=pages[request.url.params.get("pageToken")])

    store, seen = _store(handler)

    async def run() -> list[str]:
        async with store:
            return [obj.name for obj in await store.list_folder("people")]

    assert asyncio.run(run()) == ["A.json", "B.json"]
    assert len(seen) == 2


def test_http_errors_become_remote_store_errors() -> None:
    store, _ = _store(lambda request: httpx.Response(404, json={"error": "missing"}))

    async def run() -> None:
        async with store:
            await store.delete("o-404")

    with pytest.raises(RemoteStoreError) as excinfo:
        asyncio.run(run())

    assert excinfo.value.status_code == 404
    assert excinfo.value.location == "o-404"


def test_transport_errors_become_remote_store_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    store, _ = _store(handler)

    with pytest.raises(RemoteStoreError, match="refused"):
        asyncio.run(store.get("o-1"))


def test_unexpected_payload_is_rejected() -> None:
    store, _ = _store(lambda request: httpx.Response(200, content=json.dumps({"nope": 1})))

    with pytest.raises(RemoteStoreError, match="Unexpected"):
        asyncio.run(store.patch("o-1", b"{}"))


def test_store_requires_base_url() -> None:
    with pytest.raises(ValueError, match="base_url"):
        HttpObjectStore(resilience=ResilienceConfig(name="no-url"))


def test_client_is_reused_until_closed() -> None:
    created: list[ResilientClient] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"x")

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001
            base_url=BASE_URL, transport=httpx.MockTransport(handler)
        )
        created.append(client)
        return client

    store = HttpObjectStore(
        resilience=ResilienceConfig(name="test-store", base_url=BASE_URL), client_factory=factory
    )

    async def run() -> None:
        await store.get("a")
        await store.get("b")
        await store.aclose()
        await store.get("c")
        await store.aclose()

    asyncio.run(run())

    assert len(created) == 2
