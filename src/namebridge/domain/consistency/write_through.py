"""Sequential write-through of one identity to the three views.

Order is fixed: per-identity object, then a single-key index patch, then the
snapshot. A failed step stops the sequence; whatever was already written is
left for ``reconcile()`` to detect and repair.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.consistency.contracts import IndexEntry, SnapshotEntry
from namebridge.domain.model import RemoteStoreError

if TYPE_CHECKING:
    from namebridge.domain.consistency.views import RemoteViews
    from namebridge.domain.ports import StoredObject
    from namebridge.domain.registry import RegistryEntry

log = getLogger(__name__)


def _index_entry(entry: RegistryEntry, stored: StoredObject) -> IndexEntry:
    return IndexEntry(
        identity_key=entry.key,
        remote_location=stored.location,
        created_at=entry.created_at,
        last_modified_at=entry.last_modified_at,
    )


def _snapshot_entry(entry: RegistryEntry) -> SnapshotEntry:
    return SnapshotEntry(
        identity=entry.identity,
        created_at=entry.created_at,
        last_modified_at=entry.last_modified_at,
    )


async def write_new_identity(views: RemoteViews, entry: RegistryEntry) -> StoredObject:
    """Create the identity's object, then index it, then add it to the snapshot."""

    stored = await views.create_identity_object(entry.identity)
    entry.remote_location = stored.location
    await _index_then_snapshot(views, entry, stored, previous_key=None)
    return stored


async def write_updated_identity(
    views: RemoteViews,
    entry: RegistryEntry,
    *,
    previous_key: str | None = None,
) -> StoredObject:
    """Patch (and rename, if re-keyed) an existing object, then the index and snapshot."""

    if entry.remote_location is None:
        stored = await write_new_identity(views, entry)
        if previous_key is not None and previous_key != entry.key:
            await views.remove_index_entry(previous_key)
            await views.remove_snapshot_entry(previous_key)
        return stored

    stored = await views.update_identity_object(entry.remote_location, entry.identity)
    await _index_then_snapshot(views, entry, stored, previous_key=previous_key)
    return stored


async def remove_identity(views: RemoteViews, key: str, location: str | None) -> None:
    """Remove a discarded identity: object first, so a failure leaves it fully present."""

    if location is not None:
        await views.delete_object(location)
    await views.remove_index_entry(key)
    await views.remove_snapshot_entry(key)
    log.info("Removed identity %r from the remote views", key)


async def _index_then_snapshot(
    views: RemoteViews,
    entry: RegistryEntry,
    stored: StoredObject,
    *,
    previous_key: str | None,
) -> None:
    try:
        await views.patch_index_entry(_index_entry(entry, stored), previous_key=previous_key)
    except RemoteStoreError:
        log.warning(
            "Object %s for %r written but not indexed; reconcile() will re-link it",
            stored.location,
            entry.key,
        )
        raise
    try:
        await views.upsert_snapshot_entry(
            entry.key, _snapshot_entry(entry), previous_key=previous_key
        )
    except RemoteStoreError:
        log.warning(
            "Object %s for %r indexed but missing from the snapshot; reconcile() will adopt it",
            stored.location,
            entry.key,
        )
        raise
