"""Build an in-memory registry from the persisted views."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.registry import Registry, RegistryEntry

if TYPE_CHECKING:
    from namebridge.domain.consistency.views import RemoteViews

log = getLogger(__name__)


async def load_registry(views: RemoteViews) -> Registry:
    """Content comes from the snapshot; object locations from the index."""

    snapshot = await views.load_snapshot()
    index = await views.load_index()
    registry = Registry(clock=views.now)
    registry.restore(
        RegistryEntry(
            identity=entry.identity,
            created_at=entry.created_at,
            last_modified_at=entry.last_modified_at,
            remote_location=(
                index.entries[key].remote_location if key in index.entries else None
            ),
        )
        for key, entry in snapshot.entries.items()
    )
    unindexed = sum(1 for entry in registry if entry.remote_location is None)
    if unindexed:
        log.warning("%d identities have no indexed object; run reconcile or backfill", unindexed)
    log.info("Loaded %d identities from the snapshot", len(registry))
    return registry
