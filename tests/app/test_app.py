from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import pytest

from namebridge import app as app_module
from namebridge.config import BackfillConfig, ResilienceConfig, StoreConfig
from namebridge.domain.consistency import ReconcileStatus
from namebridge.domain.model import ConsistencyViolation
from namebridge.domain.workflows import UseManualPrimary
from tests.helpers.disambiguation import ScriptedDisambiguator
from tests.helpers.identities import (
    make_identity,
    make_registry,
    people,
    publish,
    save_snapshot_only,
)
from tests.helpers.progress import FakeProgressStore

if TYPE_CHECKING:
    from pathlib import Path

    from namebridge.adapters.object_store import InMemoryObjectStore
    from namebridge.domain.consistency import RemoteViews, StoreLayout


@pytest.fixture
def store_config(layout: StoreLayout) -> StoreConfig:
    return StoreConfig(
        layout=layout, resilience=ResilienceConfig(name="test", base_url="http://store.test")
    )


def _write_feed(path: Path, *rows: dict[str, object]) -> Path:
    path.write_text("\n".join(json.dumps(row) for row in rows) + "\n", encoding="utf-8")
    return path


def test_reconcile_views_on_injected_store(
    views: RemoteViews, object_store: InMemoryObjectStore, store_config: StoreConfig
) -> None:
    asyncio.run(publish(views, make_registry(people(3))))

    report = app_module.reconcile_views(store=object_store, config=store_config)

    assert report.status is ReconcileStatus.CONSISTENT
    assert report.snapshot_count == 3


def test_backfill_then_stats(
    views: RemoteViews, object_store: InMemoryObjectStore, store_config: StoreConfig
) -> None:
    asyncio.run(save_snapshot_only(views, people(5)))
    progress = FakeProgressStore()
    progress.progress.completed.append("GONE")

    result = app_module.backfill_objects(
        store=object_store,
        config=store_config,
        progress_store=progress,
        backfill=BackfillConfig(chunk_size=3),
        reset=True,
    )

    assert (result.processed, result.remaining, result.total) == (3, 2, 5)
    assert "GONE" not in progress.progress.completed
    assert object_store.folder_size("objects") == 3
    stats = app_module.registry_stats(store=object_store, config=store_config)
    assert stats.identities == 5


def test_backup_and_rebuild_snapshot(
    views: RemoteViews, object_store: InMemoryObjectStore, store_config: StoreConfig
) -> None:
    asyncio.run(publish(views, make_registry(people(2))))

    location = app_module.backup_snapshot(store=object_store, config=store_config)
    snapshot = app_module.rebuild_snapshot(
        store=object_store, config=store_config, backup_first=False
    )

    assert location == "snapshot-backup"
    assert object_store.data("snapshot-backup")
    assert sorted(snapshot.entries) == ["PERSON 000", "PERSON 001"]


def test_ingest_feed_writes_through(
    tmp_path: Path,
    views: RemoteViews,
    object_store: InMemoryObjectStore,
    store_config: StoreConfig,
) -> None:
    asyncio.run(publish(views, make_registry([make_identity("JOHN SMITH")])))
    feed = _write_feed(
        tmp_path / "feed.jsonl",
        {"source": "PHONEBOOK", "name": "JOHN SMITH", "record_key": "pb-1"},
        {"source": "PHONEBOOK", "name": "ANNA BELL"},
        {"source": "PHONEBOOK"},
    )

    report = app_module.ingest_feed(feed, store=object_store, config=store_config)

    assert report.merged == ["JOHN SMITH"]
    assert report.created == ["ANNA BELL"]
    assert [item.reason for item in report.skipped] == ["invalid_record"]
    assert object_store.folder_size("objects") == 2
    snapshot = asyncio.run(views.load_snapshot())
    assert sorted(snapshot.entries) == ["ANNA BELL", "JOHN SMITH"]


def test_ingest_feed_merges_known_primary_without_asking(
    tmp_path: Path,
    views: RemoteViews,
    object_store: InMemoryObjectStore,
    store_config: StoreConfig,
) -> None:
    asyncio.run(publish(views, make_registry([make_identity("JOHN SMITH", homonyms=["JS"])])))
    answers = ScriptedDisambiguator(UseManualPrimary("JOHN SMITH II"))
    feed = _write_feed(tmp_path / "feed.jsonl", {"source": "PHONEBOOK", "name": "JOHN  SMITH"})

    report = app_module.ingest_feed(
        feed, store=object_store, config=store_config, disambiguate=answers
    )

    assert report.merged == ["JOHN SMITH"]
    assert answers.conflicts == []


def test_ingest_feed_refuses_a_stopped_store(
    tmp_path: Path,
    views: RemoteViews,
    object_store: InMemoryObjectStore,
    store_config: StoreConfig,
) -> None:
    asyncio.run(
        publish(views, make_registry([make_identity("JOHN SMITH"), make_identity("MARY JONES")]))
    )
    index = asyncio.run(views.load_index())
    lost = index.entries["MARY JONES"].remote_location
    assert lost is not None
    asyncio.run(object_store.delete(lost))
    object_store.calls.clear()
    feed = _write_feed(tmp_path / "feed.jsonl", {"source": "PHONEBOOK", "name": "PETER PAN"})

    with pytest.raises(ConsistencyViolation) as excinfo:
        app_module.ingest_feed(feed, store=object_store, config=store_config)

    assert excinfo.value.report.missing_objects == ("MARY JONES",)
    assert [op for op, _ in object_store.calls if op in {"put", "patch"}] == []
    assert "PETER PAN" not in asyncio.run(views.load_snapshot()).entries


def test_match_feeds_links_two_files(tmp_path: Path) -> None:
    records = _write_feed(
        tmp_path / "records.jsonl",
        {"source": "PHONEBOOK", "name": "SMITH JOHN", "fire_number": 12},
        {"source": "PHONEBOOK", "name": "ZEBULON PIKE", "address": "PO BOX 1"},
        {"source": "PHONEBOOK", "name": "X", "fire_number": 9999},
    )
    targets = _write_feed(
        tmp_path / "targets.jsonl",
        {"source": "VISION_APPRAISAL", "name": "JOHN SMITH", "fire_number": 12},
        {"source": "VISION_APPRAISAL", "name": "MARY JONES", "fire_number": 40},
    )

    report = app_module.match_feeds(records, targets)

    assert [outcome.record.name for outcome in report.auto_apply] == ["SMITH JOHN"]
    assert [item.record.name for item in report.unhandled] == ["ZEBULON PIKE"]
    assert [item.reason for item in report.skipped] == ["invalid_fire_number"]
