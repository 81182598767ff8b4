"""In-process object store for tests and dry runs."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.model import RemoteStoreError
from namebridge.domain.ports import StoredObject

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

log = getLogger(__name__)

_BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


@dataclass(slots=True, kw_only=True)
class _Blob:
    location: str
    name: str
    folder: str | None
    data: bytes
    created_at: datetime
    modified_at: datetime
    metadata: dict[str, str] = field(default_factory=dict[str, str])

    def stored(self) -> StoredObject:
        return StoredObject(
            location=self.location,
            name=self.name,
            created_at=self.created_at,
            modified_at=self.modified_at,
        )


@dataclass(slots=True)
class _Failure:
    operation: str
    location: str | None
    remaining: int


class InMemoryObjectStore:
    """Dictionary-backed ``ObjectStore``.

    Timestamps come from a ticking clock (one second per write) unless a clock
    is given, so "most recently modified" is deterministic. ``fail_next``
    queues a ``RemoteStoreError`` for a given operation.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._objects: dict[str, _Blob] = {}
        self._ids = itertools.count(1)
        self._ticks = itertools.count(1)
        self._clock = clock or self._tick
        self._failures: list[_Failure] = []
        self.calls: list[tuple[str, str]] = []

    def _tick(self) -> datetime:
        return _BASE_TIME + timedelta(seconds=next(self._ticks))

    # Test helpers

    def seed(self, location: str, data: bytes = b"", *, name: str | None = None) -> StoredObject:
        """Place a blob at a fixed location outside any folder (snapshot, index, backup)."""

        now = self._clock()
        blob = _Blob(
            location=location,
            name=name or location,
            folder=None,
            data=data,
            created_at=now,
            modified_at=now,
        )
        self._objects[location] = blob
        return blob.stored()

    def fail_next(self, operation: str, *, location: str | None = None, count: int = 1) -> None:
        self._failures.append(_Failure(operation=operation, location=location, remaining=count))

    def data(self, location: str) -> bytes:
        return self._objects[location].data

    def folder_size(self, folder: str) -> int:
        return sum(1 for blob in self._objects.values() if blob.folder == folder)

    # ObjectStore

    async def get(self, location: str) -> bytes:
        self._record("get", location)
        return self._require(location).data

    async def put(self, folder: str, data: bytes, metadata: Mapping[str, str]) -> StoredObject:
        self._record("put", folder)
        now = self._clock()
        location = f"obj-{next(self._ids):06d}"
        blob = _Blob(
            location=location,
            name=metadata.get("name", location),
            folder=folder,
            data=data,
            created_at=now,
            modified_at=now,
            metadata=dict(metadata),
        )
        self._objects[location] = blob
        return blob.stored()

    async def patch(self, location: str, data: bytes, *, name: str | None = None) -> StoredObject:
        self._record("patch", location)
        blob = self._require(location)
        blob.data = data
        blob.modified_at = self._clock()
        if name is not None:
            blob.name = name
        return blob.stored()

    async def list_folder(self, folder: str) -> list[StoredObject]:
        self._record("list_folder", folder)
        return [blob.stored() for blob in self._objects.values() if blob.folder == folder]

    async def delete(self, location: str) -> None:
        self._record("delete", location)
        self._require(location)
        del self._objects[location]

    def _require(self, location: str) -> _Blob:
        blob = self._objects.get(location)
        if blob is None:
            raise RemoteStoreError(f"No object at {location}", status_code=404, location=location)
        return blob

    def _record(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        for failure in self._failures:
            if failure.operation != operation:
                continue
            if failure.location is not None and failure.location != target:
                continue
            failure.remaining -= 1
            if failure.remaining <= 0:
                self._failures.remove(failure)
            log.debug("Injected failure for %s %s", operation, target)
            raise RemoteStoreError(
                f"Injected {operation} failure for {target}", status_code=503, location=target
            )
