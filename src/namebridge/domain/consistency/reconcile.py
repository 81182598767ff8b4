"""Detect and repair divergence between snapshot, per-identity objects and index.

Steps:
1. remove duplicate objects per key (keep the index-referenced one, else the
   most recently modified) and re-list the folder;
2. adopt objects whose key is missing from the snapshot (their content is read
   back; an adopted object that still carries a missing key as an alias is a
   re-key whose snapshot update never landed; objects that do not decode are
   reported and left alone);
3. stop if any snapshot key has no object, since that data was lost or never
   written and needs a full rewrite pass;
4. rebuild index entries that are missing, stale or dangling.

Variants claimed by several snapshot identities (e.g. an alias move whose
source write failed) are reported but never resolved automatically.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.consistency.contracts import (
    IndexEntry,
    ReconcileReport,
    ReconcileStatus,
    SnapshotEntry,
)
from namebridge.domain.consistency.naming import folder_key, key_for_object_name
from namebridge.domain.model import ConsistencyViolation, ParseError
from namebridge.domain.registry.variant_cache import find_variant_conflicts

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from namebridge.domain.consistency.contracts import BulkSnapshot, RemoteIndex
    from namebridge.domain.consistency.views import RemoteViews
    from namebridge.domain.ports import StoredObject

log = getLogger(__name__)

STOPPED_MESSAGE = "Per-identity objects missing for snapshot keys; rerun object creation"

_EPOCH = datetime.min.replace(tzinfo=UTC)


def group_objects_by_key(
    objects: Iterable[StoredObject],
    snapshot_keys: Iterable[str] = (),
) -> dict[str, list[StoredObject]]:
    """Group folder objects by identity key.

    Object names are mapped back through the same lossy naming rule the writer
    uses, so snapshot keys containing rejected characters still line up.
    """

    by_folder_key = {folder_key(key): key for key in snapshot_keys}
    groups: defaultdict[str, list[StoredObject]] = defaultdict(list)
    for obj in objects:
        derived = key_for_object_name(obj.name)
        if derived is None:
            log.debug("Ignoring foreign object %s (%s)", obj.location, obj.name)
            continue
        groups[by_folder_key.get(derived, derived)].append(obj)
    return dict(groups)


def choose_survivor(candidates: Iterable[StoredObject], referenced: str | None) -> StoredObject:
    """Keep the object the index references, otherwise the most recently modified."""

    ordered = list(candidates)
    for obj in ordered:
        if referenced is not None and obj.location == referenced:
            return obj
    return max(ordered, key=lambda obj: obj.modified_at or obj.created_at or _EPOCH)


async def reconcile(views: RemoteViews) -> ReconcileReport:
    snapshot = await views.load_snapshot()
    index = await views.load_index()

    groups = group_objects_by_key(await views.list_objects(), snapshot.entries)
    removed = await _remove_duplicates(views, groups, index)
    if removed:
        groups = group_objects_by_key(await views.list_objects(), snapshot.entries)
    folder = {
        key: choose_survivor(group, _referenced(index, key)) for key, group in groups.items()
    }

    adopted, unreadable = await _adopt_orphans(views, snapshot, folder)
    missing = sorted(key for key in snapshot.entries if key not in folder)

    if missing or len(folder) < snapshot.count:
        report = ReconcileReport(
            status=ReconcileStatus.STOPPED,
            snapshot_count=snapshot.count,
            folder_count=len(folder),
            index_count=index.count,
            duplicates_removed=tuple(removed),
            snapshot_adopted=tuple(adopted),
            missing_objects=tuple(missing),
            unreadable_objects=tuple(unreadable),
            message=STOPPED_MESSAGE,
        )
        log.error(
            "Reconciliation stopped: snapshot=%d folder=%d missing=%d",
            report.snapshot_count,
            report.folder_count,
            len(missing),
        )
        return report

    if adopted:
        await views.save_snapshot(snapshot)

    added, relinked, dropped = _repair_index(index, folder, now=views.now())
    if added or relinked or dropped:
        await views.save_index(index)

    conflicts = _variant_conflicts(snapshot)

    report = ReconcileReport(
        status=ReconcileStatus.CONSISTENT,
        snapshot_count=snapshot.count,
        folder_count=len(folder),
        index_count=index.count,
        duplicates_removed=tuple(removed),
        index_added=tuple(added),
        index_relinked=tuple(relinked),
        index_dropped=tuple(dropped),
        snapshot_adopted=tuple(adopted),
        unreadable_objects=tuple(unreadable),
        variant_conflicts=conflicts,
    )
    if report.repairs:
        report = replace(report, status=ReconcileStatus.REPAIRED)
        log.info(
            "Reconciliation repaired %d issue(s): duplicates=%d index+=%d relinked=%d "
            "index-=%d adopted=%d",
            report.repairs,
            len(removed),
            len(added),
            len(relinked),
            len(dropped),
            len(adopted),
        )
    else:
        log.info("Views consistent: %d identities", report.snapshot_count)
    return report


async def reconcile_or_raise(views: RemoteViews) -> ReconcileReport:
    """Like ``reconcile`` but a stopped run raises ``ConsistencyViolation``."""

    report = await reconcile(views)
    if report.status is ReconcileStatus.STOPPED:
        raise ConsistencyViolation(report)
    return report


def _variant_conflicts(snapshot: BulkSnapshot) -> tuple[str, ...]:
    conflicts = find_variant_conflicts(entry.identity for entry in snapshot.entries.values())
    for variant, keys in sorted(conflicts.items()):
        log.warning("Variant %r is claimed by %s; needs a manual move", variant, ", ".join(keys))
    return tuple(sorted(conflicts))


def _referenced(index: RemoteIndex, key: str) -> str | None:
    entry = index.entries.get(key)
    return entry.remote_location if entry is not None else None


async def _remove_duplicates(
    views: RemoteViews,
    groups: Mapping[str, list[StoredObject]],
    index: RemoteIndex,
) -> list[str]:
    removed: list[str] = []
    for key, group in groups.items():
        if len(group) < 2:
            continue
        keep = choose_survivor(group, _referenced(index, key))
        for obj in group:
            if obj is keep:
                continue
            await views.delete_object(obj.location)
            removed.append(obj.location)
            log.info(
                "Deleted duplicate object %s for %r (kept %s)", obj.location, key, keep.location
            )
    return removed


async def _adopt_orphans(
    views: RemoteViews,
    snapshot: BulkSnapshot,
    folder: dict[str, StoredObject],
) -> tuple[list[str], list[str]]:
    adopted: list[str] = []
    unreadable: list[str] = []
    for key, obj in list(folder.items()):
        if key in snapshot.entries:
            continue
        try:
            identity = await views.read_identity(obj.location)
        except ParseError as exc:
            folder.pop(key)
            unreadable.append(obj.location)
            log.warning(
                "Object %s (%r) is not a readable identity; left untouched: %s",
                obj.location,
                obj.name,
                exc,
            )
            continue
        if identity.key in snapshot.entries:
            folder.pop(key)
            log.warning(
                "Object %s holds %r under the foreign name %r; left untouched",
                obj.location,
                identity.key,
                obj.name,
            )
            continue
        if identity.key != key:
            folder[identity.key] = folder.pop(key)
        now = views.now()
        snapshot.entries[identity.key] = SnapshotEntry(
            identity=identity,
            created_at=obj.created_at or now,
            last_modified_at=obj.modified_at or now,
        )
        adopted.append(identity.key)
        for variant in identity.aliases.normalized_values()[1:]:
            if variant in snapshot.entries and variant not in folder:
                del snapshot.entries[variant]
                log.info("Snapshot entry %r re-keyed to %r", variant, identity.key)
    return adopted, unreadable


def _repair_index(
    index: RemoteIndex, folder: Mapping[str, StoredObject], *, now: datetime
) -> tuple[list[str], list[str], list[str]]:
    added: list[str] = []
    relinked: list[str] = []
    dropped: list[str] = []
    for key, obj in folder.items():
        current = index.entries.get(key)
        if current is None:
            index.entries[key] = IndexEntry(
                identity_key=key,
                remote_location=obj.location,
                created_at=obj.created_at or now,
                last_modified_at=obj.modified_at or now,
            )
            added.append(key)
        elif current.remote_location != obj.location:
            current.remote_location = obj.location
            relinked.append(key)
    for key in list(index.entries):
        if key not in folder:
            del index.entries[key]
            dropped.append(key)
    return added, relinked, dropped

