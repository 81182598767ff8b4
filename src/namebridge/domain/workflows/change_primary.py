"""Replace an identity's primary alias, re-keying it locally and remotely."""

from __future__ import annotations

from typing import TYPE_CHECKING

from namebridge.domain.model import DemoteTarget, normalize_key
from namebridge.domain.workflows.persist import persist_updated

if TYPE_CHECKING:
    from namebridge.domain.model import TermValue
    from namebridge.domain.registry import RegistryContext, RegistryEntry


async def change_primary_alias(
    ctx: RegistryContext,
    key: str,
    new_value: TermValue,
    demote_to: DemoteTarget = DemoteTarget.HOMONYMS,
) -> RegistryEntry:
    old_key = ctx.registry.entry(key).key
    async with ctx.locked(old_key, normalize_key(new_value)):
        entry = ctx.registry.change_primary(old_key, new_value, demote_to)
        if entry.key != old_key:
            await persist_updated(ctx, entry, previous_key=old_key)
    return entry
