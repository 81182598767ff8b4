"""Rebuild the bulk snapshot from the per-identity objects."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.consistency.backfill import DEFAULT_CONCURRENCY
from namebridge.domain.consistency.contracts import BulkSnapshot, SnapshotEntry
from namebridge.domain.consistency.reconcile import choose_survivor, group_objects_by_key

if TYPE_CHECKING:
    from namebridge.domain.consistency.views import RemoteViews
    from namebridge.domain.ports import StoredObject

log = getLogger(__name__)


async def rebuild_snapshot_from_objects(
    views: RemoteViews,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    backup_first: bool = True,
) -> BulkSnapshot:
    """Read every per-identity object and write a fresh snapshot from them."""

    if backup_first and views.layout.backup_location is not None:
        await views.backup_snapshot()

    index = await views.load_index()
    groups = group_objects_by_key(await views.list_objects())
    survivors: list[StoredObject] = []
    for key, group in groups.items():
        entry = index.entries.get(key)
        survivors.append(choose_survivor(group, entry.remote_location if entry else None))

    semaphore = asyncio.Semaphore(concurrency)
    snapshot = BulkSnapshot(created_at=views.now())

    async def read_one(obj: StoredObject) -> None:
        async with semaphore:
            identity = await views.read_identity(obj.location)
        now = views.now()
        snapshot.entries[identity.key] = SnapshotEntry(
            identity=identity,
            created_at=obj.created_at or now,
            last_modified_at=obj.modified_at or now,
        )

    await asyncio.gather(*(read_one(obj) for obj in survivors))
    snapshot.entries = dict(sorted(snapshot.entries.items()))
    await views.save_snapshot(snapshot)
    log.info("Rebuilt snapshot from %d objects", snapshot.count)
    return snapshot
