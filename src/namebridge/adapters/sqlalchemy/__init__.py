"""SQLAlchemy adapter package for local backfill progress."""

from __future__ import annotations

from .progress import SqlAlchemyProgressStore, StartupError, is_started, shutdown, startup
from .tables import ProgressState, create_all_tables, metadata

__all__ = [
    "ProgressState",
    "SqlAlchemyProgressStore",
    "StartupError",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
