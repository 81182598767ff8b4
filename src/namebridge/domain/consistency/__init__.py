"""Three-view remote consistency protocol: snapshot, per-identity objects, index."""

from __future__ import annotations

from .backfill import BackfillOptions, align_progress, run_backfill
from .contracts import (
    BackfillProgress,
    BackfillResult,
    BulkSnapshot,
    IndexEntry,
    ReconcileReport,
    ReconcileStatus,
    RemoteIndex,
    SnapshotEntry,
    StoreLayout,
)
from .loading import load_registry
from .naming import folder_key, key_for_object_name, object_name_for_key
from .rebuild import rebuild_snapshot_from_objects
from .reconcile import choose_survivor, group_objects_by_key, reconcile, reconcile_or_raise
from .views import RemoteViews
from .write_through import remove_identity, write_new_identity, write_updated_identity

__all__ = [
    "BackfillOptions",
    "BackfillProgress",
    "BackfillResult",
    "BulkSnapshot",
    "IndexEntry",
    "ReconcileReport",
    "ReconcileStatus",
    "RemoteIndex",
    "RemoteViews",
    "SnapshotEntry",
    "StoreLayout",
    "align_progress",
    "choose_survivor",
    "folder_key",
    "group_objects_by_key",
    "key_for_object_name",
    "load_registry",
    "object_name_for_key",
    "rebuild_snapshot_from_objects",
    "reconcile",
    "reconcile_or_raise",
    "remove_identity",
    "run_backfill",
    "write_new_identity",
    "write_updated_identity",
]
