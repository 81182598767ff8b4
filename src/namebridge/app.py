"""Application orchestration entry points.

Each function is synchronous and runs its own event loop; adapters default to
the configured HTTP object store and SQLite progress store but can be injected.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.adapters.codec import JsonViewCodec
from namebridge.adapters.feed import read_jsonl
from namebridge.adapters.object_store import HttpObjectStore
from namebridge.adapters.sqlalchemy import SqlAlchemyProgressStore, is_started, startup
from namebridge.config import get_backfill_config, get_store_config
from namebridge.domain.consistency import (
    RemoteViews,
    load_registry,
    rebuild_snapshot_from_objects,
    reconcile,
    reconcile_or_raise,
    run_backfill,
)
from namebridge.domain.matching import run_matching
from namebridge.domain.registry import RegistryContext
from namebridge.domain.workflows import ingest_records

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from namebridge.config import BackfillConfig, StoreConfig
    from namebridge.domain.consistency import BackfillResult, BulkSnapshot, ReconcileReport
    from namebridge.domain.matching import MatchingReport
    from namebridge.domain.model import SourceRecord
    from namebridge.domain.ports import (
        DisambiguationCallback,
        NameParser,
        ObjectStore,
        ProgressStore,
    )
    from namebridge.domain.registry import RegistryStats
    from namebridge.domain.workflows import IngestReport

log = getLogger(__name__)


@asynccontextmanager
async def open_views(
    *,
    store: ObjectStore | None = None,
    config: StoreConfig | None = None,
) -> AsyncIterator[RemoteViews]:
    """Yield views over ``store``, or over a configured HTTP store that is closed afterwards."""

    effective_config = config or get_store_config()
    if store is not None:
        yield RemoteViews(store, JsonViewCodec(), effective_config.layout)
        return
    async with HttpObjectStore(resilience=effective_config.resilience) as http_store:
        yield RemoteViews(http_store, JsonViewCodec(), effective_config.layout)


def reconcile_views(
    *,
    store: ObjectStore | None = None,
    config: StoreConfig | None = None,
) -> ReconcileReport:
    async def run() -> ReconcileReport:
        async with open_views(store=store, config=config) as views:
            return await reconcile(views)

    return asyncio.run(run())


def backfill_objects(
    *,
    store: ObjectStore | None = None,
    config: StoreConfig | None = None,
    progress_store: ProgressStore | None = None,
    backfill: BackfillConfig | None = None,
    resume: bool = True,
    reset: bool = False,
) -> BackfillResult:
    """Write the next chunk of missing per-identity objects."""

    effective_config = config or get_store_config()
    effective_progress = progress_store or _default_progress_store(effective_config)
    if reset:
        effective_progress.clear()
    options = (backfill or get_backfill_config()).options(resume=resume)

    async def run() -> BackfillResult:
        async with open_views(store=store, config=effective_config) as views:
            return await run_backfill(views, effective_progress, options)

    return asyncio.run(run())


def backup_snapshot(
    *,
    store: ObjectStore | None = None,
    config: StoreConfig | None = None,
) -> str:
    async def run() -> str:
        async with open_views(store=store, config=config) as views:
            return await views.backup_snapshot()

    return asyncio.run(run())


def rebuild_snapshot(
    *,
    store: ObjectStore | None = None,
    config: StoreConfig | None = None,
    backup_first: bool = True,
) -> BulkSnapshot:
    async def run() -> BulkSnapshot:
        async with open_views(store=store, config=config) as views:
            return await rebuild_snapshot_from_objects(views, backup_first=backup_first)

    return asyncio.run(run())


def registry_stats(
    *,
    store: ObjectStore | None = None,
    config: StoreConfig | None = None,
) -> RegistryStats:
    async def run() -> RegistryStats:
        async with open_views(store=store, config=config) as views:
            registry = await load_registry(views)
        return registry.stats()

    return asyncio.run(run())


def match_feeds(records_path: Path, targets_path: Path) -> MatchingReport[SourceRecord]:
    """Offline two-source matching of two JSON Lines feeds; nothing is written."""

    records = read_jsonl(records_path)
    targets = read_jsonl(targets_path)
    if targets.skipped:
        log.warning("Skipped %d malformed target line(s)", len(targets.skipped))
    return run_matching(records.records, targets.records, skipped=records.skipped)


def ingest_feed(
    path: Path,
    *,
    store: ObjectStore | None = None,
    config: StoreConfig | None = None,
    disambiguate: DisambiguationCallback | None = None,
    name_parser: NameParser | None = None,
) -> IngestReport:
    """Fold a feed into the registry, writing every change through to the store.

    The views are reconciled first; a stopped reconciliation raises
    ``ConsistencyViolation`` before anything is written.
    """

    batch = read_jsonl(path)

    async def run() -> IngestReport:
        async with open_views(store=store, config=config) as views:
            await reconcile_or_raise(views)
            ctx = RegistryContext(
                registry=await load_registry(views),
                views=views,
                disambiguate=disambiguate,
                name_parser=name_parser,
            )
            return await ingest_records(ctx, batch.records, skipped=batch.skipped)

    return asyncio.run(run())


def _default_progress_store(config: StoreConfig) -> SqlAlchemyProgressStore:
    if not is_started():
        startup()
    return SqlAlchemyProgressStore(config.layout.objects_folder)
