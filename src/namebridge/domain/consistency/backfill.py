"""Chunked, bounded-concurrency build/resume of per-identity objects."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.consistency.contracts import (
    BackfillProgress,
    BackfillResult,
    IndexEntry,
    SnapshotEntry,
)
from namebridge.domain.consistency.reconcile import group_objects_by_key
from namebridge.domain.model import RemoteStoreError

if TYPE_CHECKING:
    from namebridge.domain.consistency.contracts import BulkSnapshot
    from namebridge.domain.consistency.views import RemoteViews
    from namebridge.domain.ports import ProgressStore, StoredObject

log = getLogger(__name__)

DEFAULT_CHUNK_SIZE = 400
DEFAULT_CONCURRENCY = 5
DEFAULT_CHECKPOINT_EVERY = 50


@dataclass(frozen=True, slots=True)
class BackfillOptions:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY
    resume: bool = True

    def __post_init__(self) -> None:
        if self.chunk_size < 1 or self.concurrency < 1 or self.checkpoint_every < 1:
            raise ValueError("Backfill sizes must be positive")


def align_progress(
    progress: BackfillProgress,
    snapshot: BulkSnapshot,
    existing_keys: set[str],
) -> BackfillProgress:
    """Re-validate local progress against the snapshot and the folder.

    Keys no longer in the snapshot are dropped; keys that already have an
    object in the folder count as done even if local progress lost them.
    """

    completed = [key for key in progress.completed if key in snapshot.entries]
    seen = set(completed)
    for key in sorted(existing_keys):
        if key in snapshot.entries and key not in seen:
            completed.append(key)
            seen.add(key)
    failed = {
        key: error
        for key, error in progress.failed.items()
        if key in snapshot.entries and key not in seen
    }
    dropped = sum(1 for key in progress.completed if key not in snapshot.entries)
    if dropped:
        log.info("Dropped %d progress entries not present in the snapshot", dropped)
    return BackfillProgress(
        completed=completed,
        failed=failed,
        last_key=progress.last_key,
        updated_at=progress.updated_at,
    )


async def run_backfill(
    views: RemoteViews,
    progress_store: ProgressStore,
    options: BackfillOptions | None = None,
) -> BackfillResult:
    """Write one chunk of missing per-identity objects (object, then index patch).

    The snapshot is the source of truth for what has to exist; local progress is
    only a hint and is aligned with the snapshot and the folder listing first.
    """

    opts = options or BackfillOptions()
    snapshot = await views.load_snapshot()
    objects = await views.list_objects()
    existing = set(group_objects_by_key(objects, snapshot.entries))

    base = progress_store.load() if opts.resume else BackfillProgress()
    progress = align_progress(base, snapshot, existing)
    done = set(progress.completed)
    remaining = [key for key in sorted(snapshot.entries) if key not in done]
    chunk = remaining[: opts.chunk_size]
    log.info(
        "Backfill: total=%d done=%d remaining=%d chunk=%d concurrency=%d",
        snapshot.count,
        len(done),
        len(remaining),
        len(chunk),
        opts.concurrency,
    )

    semaphore = asyncio.Semaphore(opts.concurrency)
    failures: dict[str, str] = {}
    processed = 0

    async def write_one(key: str, entry: SnapshotEntry) -> None:
        nonlocal processed
        async with semaphore:
            try:
                stored = await views.create_identity_object(entry.identity)
                await views.patch_index_entry(_index_entry(key, entry, stored))
            except RemoteStoreError as exc:
                failures[key] = str(exc)
                progress.failed[key] = str(exc)
                log.warning("Backfill failed for %r: %s", key, exc)
                return
        progress.completed.append(key)
        progress.failed.pop(key, None)
        progress.last_key = key
        processed += 1
        if processed % opts.checkpoint_every == 0:
            _checkpoint(views, progress_store, progress)

    await asyncio.gather(*(write_one(key, snapshot.entries[key]) for key in chunk))
    _checkpoint(views, progress_store, progress)

    result = BackfillResult(
        processed=processed,
        failed=tuple(sorted(failures.items())),
        total=snapshot.count,
        remaining=len(remaining) - processed,
    )
    log.info(
        "Backfill chunk finished: processed=%d failed=%d remaining=%d",
        result.processed,
        len(result.failed),
        result.remaining,
    )
    return result


def _index_entry(key: str, entry: SnapshotEntry, stored: StoredObject) -> IndexEntry:
    return IndexEntry(
        identity_key=key,
        remote_location=stored.location,
        created_at=entry.created_at,
        last_modified_at=entry.last_modified_at,
    )


def _checkpoint(
    views: RemoteViews, progress_store: ProgressStore, progress: BackfillProgress
) -> None:
    progress.updated_at = views.now()
    progress_store.save(progress)
