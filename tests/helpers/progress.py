"""In-memory ``ProgressStore`` fake."""

from __future__ import annotations

from dataclasses import replace

from namebridge.domain.consistency import BackfillProgress


class FakeProgressStore:
    def __init__(self, initial: BackfillProgress | None = None) -> None:
        self.progress = initial or BackfillProgress()
        self.saves = 0

    def load(self) -> BackfillProgress:
        return replace(
            self.progress,
            completed=list(self.progress.completed),
            failed=dict(self.progress.failed),
        )

    def save(self, progress: BackfillProgress) -> None:
        self.saves += 1
        self.progress = replace(
            progress, completed=list(progress.completed), failed=dict(progress.failed)
        )

    def clear(self) -> None:
        self.progress = BackfillProgress()
