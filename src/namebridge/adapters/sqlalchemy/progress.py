"""SQLite-backed backfill progress store."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, delete, insert, select
from sqlalchemy.orm import Session, sessionmaker

from namebridge.adapters.sqlalchemy.tables import (
    ProgressState,
    backfill_cursor_table,
    backfill_key_table,
    create_all_tables,
)
from namebridge.config.storage import get_progress_database_config
from namebridge.domain.consistency import BackfillProgress

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the progress store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "Progress store not initialised. Call namebridge.adapters.sqlalchemy."
                "startup() before creating a progress store."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the engine and create the progress tables."""

    if _STATE.engine is not None and not force:
        raise StartupError("Progress store already initialised. Pass force=True to reconfigure.")
    resolved_engine = engine or create_engine(
        database_uri or get_progress_database_config().uri, future=True
    )
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyProgressStore:
    """Backfill progress for one job, usually named after the objects folder."""

    def __init__(self, job: str, *, session_factory: sessionmaker[Session] | None = None) -> None:
        self.job = job
        self._session_factory = session_factory or _STATE.session_factory

    def load(self) -> BackfillProgress:
        with self._session_factory() as session:
            rows = session.execute(
                select(
                    backfill_key_table.c.identity_key,
                    backfill_key_table.c.state,
                    backfill_key_table.c.error,
                )
                .where(backfill_key_table.c.job == self.job)
                .order_by(backfill_key_table.c.identity_key)
            ).all()
            cursor = session.execute(
                select(backfill_cursor_table.c.last_key, backfill_cursor_table.c.updated_at).where(
                    backfill_cursor_table.c.job == self.job
                )
            ).first()

        progress = BackfillProgress()
        for key, state, error in rows:
            if state == ProgressState.COMPLETED:
                progress.completed.append(key)
            else:
                progress.failed[key] = error or ""
        if cursor is not None:
            progress.last_key, progress.updated_at = cursor
        return progress

    def save(self, progress: BackfillProgress) -> None:
        completed = dict.fromkeys(progress.completed)
        rows = [
            {"job": self.job, "identity_key": key, "state": ProgressState.COMPLETED, "error": None}
            for key in completed
        ]
        rows.extend(
            {"job": self.job, "identity_key": key, "state": ProgressState.FAILED, "error": error}
            for key, error in progress.failed.items()
            if key not in completed
        )
        with self._session_factory.begin() as session:
            self._delete_job(session)
            if rows:
                session.execute(insert(backfill_key_table), rows)
            session.execute(
                insert(backfill_cursor_table).values(
                    job=self.job,
                    last_key=progress.last_key,
                    updated_at=progress.updated_at,
                )
            )
        log.debug(
            "Saved backfill progress for %r: completed=%d failed=%d",
            self.job,
            len(progress.completed),
            len(progress.failed),
        )

    def clear(self) -> None:
        with self._session_factory.begin() as session:
            self._delete_job(session)
        log.info("Cleared backfill progress for %r", self.job)

    def _delete_job(self, session: Session) -> None:
        session.execute(delete(backfill_key_table).where(backfill_key_table.c.job == self.job))
        session.execute(
            delete(backfill_cursor_table).where(backfill_cursor_table.c.job == self.job)
        )
