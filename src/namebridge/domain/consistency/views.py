"""Access to the three persisted views through the object store port.

Index and snapshot updates re-read the current remote object and merge a single
key, so entries written by other writers in the meantime are preserved. Writers
inside this process are serialized per view.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.consistency.contracts import BulkSnapshot, IndexEntry, RemoteIndex
from namebridge.domain.consistency.naming import object_name_for_key

if TYPE_CHECKING:
    from collections.abc import Callable

    from namebridge.domain.consistency.contracts import SnapshotEntry, StoreLayout
    from namebridge.domain.model import CanonicalIdentity
    from namebridge.domain.ports import ObjectStore, StoredObject, ViewCodec

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RemoteViews:
    def __init__(
        self,
        store: ObjectStore,
        codec: ViewCodec,
        layout: StoreLayout,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.codec = codec
        self.layout = layout
        self._clock = clock
        self._index_lock = asyncio.Lock()
        self._snapshot_lock = asyncio.Lock()

    def now(self) -> datetime:
        return self._clock()

    # Bulk snapshot

    async def load_snapshot(self) -> BulkSnapshot:
        data = await self.store.get(self.layout.snapshot_location)
        if not data.strip():
            return BulkSnapshot(created_at=self.now())
        return self.codec.decode_snapshot(data)

    async def save_snapshot(self, snapshot: BulkSnapshot) -> None:
        async with self._snapshot_lock:
            await self._write_snapshot(snapshot)

    async def upsert_snapshot_entry(
        self,
        key: str,
        entry: SnapshotEntry,
        *,
        previous_key: str | None = None,
    ) -> None:
        async with self._snapshot_lock:
            snapshot = await self.load_snapshot()
            if previous_key is not None and previous_key != key:
                snapshot.entries.pop(previous_key, None)
            snapshot.entries[key] = entry
            await self._write_snapshot(snapshot)

    async def remove_snapshot_entry(self, key: str) -> None:
        async with self._snapshot_lock:
            snapshot = await self.load_snapshot()
            if snapshot.entries.pop(key, None) is not None:
                await self._write_snapshot(snapshot)

    async def backup_snapshot(self) -> str:
        """Copy the snapshot's current bytes to the configured backup object."""

        if self.layout.backup_location is None:
            raise ValueError("No backup location configured")
        data = await self.store.get(self.layout.snapshot_location)
        await self.store.patch(self.layout.backup_location, data)
        log.info("Snapshot backed up to %s (%d bytes)", self.layout.backup_location, len(data))
        return self.layout.backup_location

    async def _write_snapshot(self, snapshot: BulkSnapshot) -> None:
        await self.store.patch(self.layout.snapshot_location, self.codec.encode_snapshot(snapshot))

    # Index

    async def load_index(self) -> RemoteIndex:
        data = await self.store.get(self.layout.index_location)
        if not data.strip():
            now = self.now()
            return RemoteIndex(
                created_at=now, last_modified_at=now, folder=self.layout.objects_folder
            )
        return self.codec.decode_index(data)

    async def save_index(self, index: RemoteIndex) -> None:
        async with self._index_lock:
            await self._write_index(index)

    async def patch_index_entry(
        self, entry: IndexEntry, *, previous_key: str | None = None
    ) -> None:
        """Set one key (dropping ``previous_key``) without rewriting other entries."""

        async with self._index_lock:
            index = await self.load_index()
            if previous_key is not None and previous_key != entry.identity_key:
                index.entries.pop(previous_key, None)
            index.entries[entry.identity_key] = entry
            await self._write_index(index)

    async def remove_index_entry(self, key: str) -> None:
        async with self._index_lock:
            index = await self.load_index()
            if index.entries.pop(key, None) is not None:
                await self._write_index(index)

    async def _write_index(self, index: RemoteIndex) -> None:
        index.last_modified_at = self.now()
        await self.store.patch(self.layout.index_location, self.codec.encode_index(index))

    # Per-identity objects

    async def list_objects(self) -> list[StoredObject]:
        return await self.store.list_folder(self.layout.objects_folder)

    async def read_identity(self, location: str) -> CanonicalIdentity:
        return self.codec.decode_identity(await self.store.get(location))

    async def create_identity_object(self, identity: CanonicalIdentity) -> StoredObject:
        name = object_name_for_key(identity.key)
        return await self.store.put(
            self.layout.objects_folder,
            self.codec.encode_identity(identity),
            {"name": name, "identity_key": identity.key},
        )

    async def update_identity_object(
        self, location: str, identity: CanonicalIdentity
    ) -> StoredObject:
        # The name is always re-derived so a re-keyed identity keeps its location.
        return await self.store.patch(
            location,
            self.codec.encode_identity(identity),
            name=object_name_for_key(identity.key),
        )

    async def delete_object(self, location: str) -> None:
        await self.store.delete(location)
