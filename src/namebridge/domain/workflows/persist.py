"""Write-through helpers shared by the workflows; no-ops without remote views."""

from __future__ import annotations

from typing import TYPE_CHECKING

from namebridge.domain.consistency import write_new_identity, write_updated_identity

if TYPE_CHECKING:
    from namebridge.domain.registry import RegistryContext, RegistryEntry


async def persist_new(ctx: RegistryContext, entry: RegistryEntry) -> None:
    if ctx.views is not None:
        await write_new_identity(ctx.views, entry)


async def persist_updated(
    ctx: RegistryContext,
    entry: RegistryEntry,
    *,
    previous_key: str | None = None,
) -> None:
    if ctx.views is not None:
        await write_updated_identity(ctx.views, entry, previous_key=previous_key)
