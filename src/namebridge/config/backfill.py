"""Backfill scheduling defaults, overridable from the environment."""

from __future__ import annotations

from dataclasses import dataclass

from namebridge.domain.consistency import BackfillOptions
from namebridge.domain.consistency.backfill import (
    DEFAULT_CHECKPOINT_EVERY,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONCURRENCY,
)

from .env import positive_int_env


@dataclass(frozen=True, slots=True)
class BackfillConfig:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY

    def options(self, *, resume: bool = True) -> BackfillOptions:
        return BackfillOptions(
            chunk_size=self.chunk_size,
            concurrency=self.concurrency,
            checkpoint_every=self.checkpoint_every,
            resume=resume,
        )


def get_backfill_config() -> BackfillConfig:
    return BackfillConfig(
        chunk_size=positive_int_env("NAMEBRIDGE_BACKFILL_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
        concurrency=positive_int_env("NAMEBRIDGE_BACKFILL_CONCURRENCY", DEFAULT_CONCURRENCY),
        checkpoint_every=positive_int_env(
            "NAMEBRIDGE_BACKFILL_CHECKPOINT_EVERY", DEFAULT_CHECKPOINT_EVERY
        ),
    )
