"""Port for locally persisted backfill progress."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from namebridge.domain.consistency.contracts import BackfillProgress


@runtime_checkable
class ProgressStore(Protocol):
    """Advisory progress; always re-validated against the bulk snapshot before use."""

    def load(self) -> BackfillProgress: ...

    def save(self, progress: BackfillProgress) -> None: ...

    def clear(self) -> None: ...
