from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from namebridge.domain.consistency import (
    BackfillOptions,
    BackfillProgress,
    BulkSnapshot,
    ReconcileStatus,
    SnapshotEntry,
    align_progress,
    rebuild_snapshot_from_objects,
    reconcile,
    run_backfill,
)
from tests.helpers.identities import FIXED_NOW, make_registry, people, publish, save_snapshot_only
from tests.helpers.progress import FakeProgressStore

if TYPE_CHECKING:
    from namebridge.adapters.object_store import InMemoryObjectStore
    from namebridge.domain.consistency import RemoteViews


def test_backfill_runs_in_resumable_chunks(
    views: RemoteViews, object_store: InMemoryObjectStore
) -> None:
    asyncio.run(save_snapshot_only(views, people(10)))
    progress = FakeProgressStore()
    options = BackfillOptions(chunk_size=4, concurrency=2, checkpoint_every=2)

    first = asyncio.run(run_backfill(views, progress, options))
    second = asyncio.run(run_backfill(views, progress, options))
    third = asyncio.run(run_backfill(views, progress, options))

    assert (first.processed, first.remaining) == (4, 6)
    assert (second.processed, second.remaining) == (4, 2)
    assert (third.processed, third.remaining) == (2, 0)
    assert first.success
    assert object_store.folder_size("objects") == 10
    assert asyncio.run(views.load_index()).count == 10
    assert progress.progress.completed[:4] == [f"PERSON {n:03d}" for n in range(4)]
    assert asyncio.run(reconcile(views)).status is ReconcileStatus.CONSISTENT


def test_backfill_checkpoints_periodically(views: RemoteViews) -> None:
    asyncio.run(save_snapshot_only(views, people(4)))
    progress = FakeProgressStore()

    asyncio.run(
        run_backfill(views, progress, BackfillOptions(chunk_size=4, checkpoint_every=2))
    )

    assert progress.saves == 3
    assert progress.progress.last_key is not None
    assert progress.progress.updated_at == FIXED_NOW


def test_existing_objects_count_as_done_when_progress_is_lost(
    views: RemoteViews, object_store: InMemoryObjectStore
) -> None:
    asyncio.run(save_snapshot_only(views, people(6)))
    progress = FakeProgressStore()
    asyncio.run(run_backfill(views, progress, BackfillOptions(chunk_size=3)))
    progress.clear()

    result = asyncio.run(run_backfill(views, progress, BackfillOptions(chunk_size=10)))

    assert result.processed == 3
    assert result.remaining == 0
    assert object_store.folder_size("objects") == 6


def test_failed_keys_are_retried_next_run(
    views: RemoteViews, object_store: InMemoryObjectStore
) -> None:
    asyncio.run(save_snapshot_only(views, people(3)))
    progress = FakeProgressStore()
    object_store.fail_next("put")

    first = asyncio.run(run_backfill(views, progress))

    assert not first.success
    assert [key for key, _ in first.failed] == ["PERSON 000"]
    assert list(progress.progress.failed) == ["PERSON 000"]

    second = asyncio.run(run_backfill(views, progress))

    assert second.success
    assert second.processed == 1
    assert progress.progress.failed == {}
    assert object_store.folder_size("objects") == 3


def test_align_progress_trusts_snapshot_over_local_state() -> None:
    snapshot = BulkSnapshot(created_at=FIXED_NOW)
    for identity in people(3):
        snapshot.entries[identity.key] = SnapshotEntry(
            identity=identity, created_at=FIXED_NOW, last_modified_at=FIXED_NOW
        )
    local = BackfillProgress(
        completed=["PERSON 000", "GONE"],
        failed={"PERSON 001": "boom", "ALSO GONE": "boom"},
    )

    aligned = align_progress(local, snapshot, {"PERSON 001"})

    assert aligned.completed == ["PERSON 000", "PERSON 001"]
    assert aligned.failed == {}


def test_backfill_options_must_be_positive() -> None:
    with pytest.raises(ValueError, match="positive"):
        BackfillOptions(chunk_size=0)


def test_rebuild_snapshot_from_objects_backs_up_first(
    views: RemoteViews, object_store: InMemoryObjectStore
) -> None:
    asyncio.run(publish(views, make_registry(people(3))))
    asyncio.run(views.save_snapshot(BulkSnapshot(created_at=FIXED_NOW)))
    emptied = object_store.data("snapshot")

    snapshot = asyncio.run(rebuild_snapshot_from_objects(views))

    assert object_store.data("snapshot-backup") == emptied
    assert snapshot.count == 3
    assert list(snapshot.entries) == ["PERSON 000", "PERSON 001", "PERSON 002"]
    assert asyncio.run(views.load_snapshot()).count == 3
