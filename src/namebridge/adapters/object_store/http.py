"""REST object store client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from namebridge.adapters.http_resilience import ResilientClient
from namebridge.domain.model import RemoteStoreError

from .schema import ObjectListPage, StoredObjectPayload

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType

    from namebridge.config.http_resilience import ResilienceConfig
    from namebridge.domain.ports import StoredObject

log = getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class HttpObjectStore:
    """``ObjectStore`` over the REST API.

    One resilient client is kept for the store's lifetime so the rate limit
    applies across all calls; close it with ``aclose()`` or ``async with``.
    """

    def __init__(
        self,
        *,
        resilience: ResilienceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        if resilience.base_url is None:
            raise ValueError("Object store resilience configuration needs a base_url")
        self._resilience = resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> HttpObjectStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, location: str) -> bytes:
        path = f"objects/{_segment(location)}/content"
        response = await self._call("GET", path, location=location)
        return response.content

    async def put(self, folder: str, data: bytes, metadata: Mapping[str, str]) -> StoredObject:
        response = await self._call(
            "POST",
            f"folders/{_segment(folder)}/objects",
            location=folder,
            params=dict(metadata),
            content=data,
        )
        stored = self._parse(StoredObjectPayload, response, location=folder).to_stored_object()
        log.debug("Created object %s (%s) in %s", stored.location, stored.name, folder)
        return stored

    async def patch(self, location: str, data: bytes, *, name: str | None = None) -> StoredObject:
        response = await self._call(
            "PATCH",
            f"objects/{_segment(location)}",
            location=location,
            params={"name": name} if name is not None else None,
            content=data,
        )
        return self._parse(StoredObjectPayload, response, location=location).to_stored_object()

    async def list_folder(self, folder: str) -> list[StoredObject]:
        objects: list[StoredObject] = []
        page_token: str | None = None
        while True:
            params = {"pageToken": page_token} if page_token else None
            response = await self._call(
                "GET", f"folders/{_segment(folder)}/objects", location=folder, params=params
            )
            page = self._parse(ObjectListPage, response, location=folder)
            objects.extend(item.to_stored_object() for item in page.files)
            if not page.next_page_token:
                return objects
            page_token = page.next_page_token

    async def delete(self, location: str) -> None:
        await self._call("DELETE", f"objects/{_segment(location)}", location=location)

    async def _call(
        self,
        method: str,
        path: str,
        *,
        location: str,
        params: Mapping[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        client = self._ensure_client()
        headers = {"Content-Type": JSON_CONTENT_TYPE} if content is not None else None
        try:
            response = await client.request(
                method, path, params=params, content=content, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RemoteStoreError(
                f"{method} {path} failed with HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
                location=location,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"{method} {path} failed: {exc}", location=location) from exc
        return response

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client

    @staticmethod
    def _parse[M: StoredObjectPayload | ObjectListPage](
        model: type[M], response: httpx.Response, *, location: str
    ) -> M:
        try:
            return model.model_validate_json(response.content)
        except ValidationError as exc:
            raise RemoteStoreError(
                f"Unexpected object store payload for {location}", location=location
            ) from exc


def _segment(value: str) -> str:
    return quote(value, safe="")
