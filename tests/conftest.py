from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from namebridge.adapters.codec import JsonViewCodec
from namebridge.adapters.object_store import InMemoryObjectStore
from namebridge.adapters.sqlalchemy import create_all_tables, shutdown, startup
from namebridge.domain.consistency import RemoteViews, StoreLayout
from tests.helpers.identities import fixed_clock

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def layout() -> StoreLayout:
    return StoreLayout(
        snapshot_location="snapshot",
        index_location="index",
        objects_folder="objects",
        backup_location="snapshot-backup",
    )


@pytest.fixture
def object_store(layout: StoreLayout) -> InMemoryObjectStore:
    store = InMemoryObjectStore()
    store.seed(layout.snapshot_location)
    store.seed(layout.index_location)
    assert layout.backup_location is not None
    store.seed(layout.backup_location)
    return store


@pytest.fixture
def views(object_store: InMemoryObjectStore, layout: StoreLayout) -> RemoteViews:
    return RemoteViews(object_store, JsonViewCodec(), layout, clock=fixed_clock)


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'progress.db'}", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=sqlite_engine, expire_on_commit=False)


@pytest.fixture
def started_progress_store(sqlite_engine: Engine) -> Iterator[Engine]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()
