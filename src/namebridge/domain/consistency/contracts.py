"""Shared consistency-protocol contracts.

This module holds only value types exchanged between the views, the
reconciler and the backfill scheduler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from namebridge.domain.model import CanonicalIdentity


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreLayout:
    """Where the three views live in the object store."""

    snapshot_location: str
    index_location: str
    objects_folder: str
    backup_location: str | None = None


@dataclass(slots=True, kw_only=True)
class SnapshotEntry:
    identity: CanonicalIdentity
    created_at: datetime
    last_modified_at: datetime


@dataclass(slots=True, kw_only=True)
class BulkSnapshot:
    """Every identity keyed by identity key. Authoritative for content."""

    created_at: datetime
    entries: dict[str, SnapshotEntry] = field(default_factory=dict[str, SnapshotEntry])

    @property
    def count(self) -> int:
        return len(self.entries)


@dataclass(slots=True, kw_only=True)
class IndexEntry:
    identity_key: str
    remote_location: str | None
    created_at: datetime
    last_modified_at: datetime


@dataclass(slots=True, kw_only=True)
class RemoteIndex:
    """Advisory key -> object location map."""

    created_at: datetime
    last_modified_at: datetime
    folder: str
    entries: dict[str, IndexEntry] = field(default_factory=dict[str, IndexEntry])

    @property
    def count(self) -> int:
        return len(self.entries)


class ReconcileStatus(StrEnum):
    CONSISTENT = "consistent"
    REPAIRED = "repaired"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconcileReport:
    status: ReconcileStatus
    snapshot_count: int
    folder_count: int
    index_count: int
    duplicates_removed: tuple[str, ...] = ()
    index_added: tuple[str, ...] = ()
    index_relinked: tuple[str, ...] = ()
    index_dropped: tuple[str, ...] = ()
    snapshot_adopted: tuple[str, ...] = ()
    missing_objects: tuple[str, ...] = ()
    unreadable_objects: tuple[str, ...] = ()
    variant_conflicts: tuple[str, ...] = ()
    message: str | None = None

    @property
    def repairs(self) -> int:
        return (
            len(self.duplicates_removed)
            + len(self.index_added)
            + len(self.index_relinked)
            + len(self.index_dropped)
            + len(self.snapshot_adopted)
        )


@dataclass(slots=True, kw_only=True)
class BackfillProgress:
    """Locally persisted cursor of a build/resume run."""

    completed: list[str] = field(default_factory=list[str])
    failed: dict[str, str] = field(default_factory=dict[str, str])
    last_key: str | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class BackfillResult:
    processed: int
    failed: tuple[tuple[str, str], ...]
    total: int
    remaining: int

    @property
    def success(self) -> bool:
        return not self.failed
