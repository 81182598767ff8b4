"""Port for the remote object store holding the three persisted views."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class StoredObject:
    location: str
    name: str
    created_at: datetime | None = None
    modified_at: datetime | None = None


@runtime_checkable
class ObjectStore(Protocol):
    """Generic folder-based blob store.

    Every call may fail transiently; implementations raise ``RemoteStoreError``
    rather than returning partial results.
    """

    async def get(self, location: str) -> bytes: ...

    async def put(self, folder: str, data: bytes, metadata: Mapping[str, str]) -> StoredObject: ...

    async def patch(
        self, location: str, data: bytes, *, name: str | None = None
    ) -> StoredObject: ...

    async def list_folder(self, folder: str) -> list[StoredObject]: ...

    async def delete(self, location: str) -> None: ...
