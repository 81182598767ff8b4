"""SQLAlchemy table metadata for locally persisted backfill progress."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

metadata = MetaData()


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class ProgressState(StrEnum):
    COMPLETED = "completed"
    FAILED = "failed"


backfill_key_table = Table(
    "backfill_key",
    metadata,
    Column("job", String, primary_key=True),
    Column("identity_key", String, primary_key=True),
    Column("state", Enum(ProgressState, native_enum=False), nullable=False),
    Column("error", Text, nullable=True),
)

backfill_cursor_table = Table(
    "backfill_cursor",
    metadata,
    Column("job", String, primary_key=True),
    Column("last_key", String, nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine, checkfirst=True)
