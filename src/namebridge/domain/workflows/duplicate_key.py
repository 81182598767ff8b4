"""Adding identities, with mandatory human resolution of duplicate keys.

While a conflict waits for its decision the context's mutation gate is
closed: no other gated registry mutation can start. A variant the incoming
identity shares with a registered identity is routed to the same decision.
"""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.model import (
    PRIMARY,
    DemoteTarget,
    DisambiguationRequired,
    DuplicateAliasError,
    DuplicateKeyError,
    NamebridgeError,
    NotFoundError,
    manual_term,
    normalize_key,
)
from namebridge.domain.workflows.contracts import (
    Abandon,
    AddIdentityResult,
    AddOutcome,
    DuplicateKeyConflict,
    PromoteVariant,
    UseManualPrimary,
)
from namebridge.domain.workflows.persist import persist_new

if TYPE_CHECKING:
    from namebridge.domain.model import CanonicalIdentity
    from namebridge.domain.registry import Registry, RegistryContext
    from namebridge.domain.workflows.contracts import DisambiguationChoice

log = getLogger(__name__)

MAX_DISAMBIGUATION_ATTEMPTS = 3
MANUAL_PRIMARY_REASON = "duplicate_key_resolution"


async def add_identity(ctx: RegistryContext, identity: CanonicalIdentity) -> AddIdentityResult:
    """Register and write through a new identity; route key or variant collisions to a human."""

    async with ctx.locked(identity.key):
        try:
            entry = ctx.registry.add(identity)
        except (DuplicateKeyError, DuplicateAliasError) as exc:
            log.info("Incoming identity %r collides: %s", identity.key, exc)
        else:
            await persist_new(ctx, entry)
            return AddIdentityResult(outcome=AddOutcome.ADDED, key=entry.key)
    return await resolve_duplicate_key(ctx, identity)


async def resolve_duplicate_key(
    ctx: RegistryContext,
    identity: CanonicalIdentity,
    *,
    max_attempts: int = MAX_DISAMBIGUATION_ATTEMPTS,
) -> AddIdentityResult:
    """Ask until a choice yields an identity that can be added.

    Every choice is applied to a fresh copy of ``identity``, which itself is
    never modified.
    """

    async with ctx.exclusive():
        candidate = identity
        choice: DisambiguationChoice | None = None
        for attempt in range(1, max_attempts + 1):
            collision = _find_collision(ctx.registry, candidate)
            if collision is not None:
                value, owner = collision
                conflict = DuplicateKeyConflict(
                    key=value,
                    incoming=identity,
                    existing=ctx.registry.lookup_by_key(owner),
                    attempt=attempt,
                )
                log.warning(
                    "Duplicate %r (owned by %r) needs disambiguation (attempt %d)",
                    conflict.key,
                    conflict.owner_key,
                    attempt,
                )
                choice = await _ask(ctx, conflict)
                if isinstance(choice, Abandon):
                    log.info("Incoming identity %r abandoned: %s", identity.key, choice.reason)
                    return AddIdentityResult(outcome=AddOutcome.ABANDONED, key=None, choice=choice)
                try:
                    candidate = _apply_choice(ctx.registry, identity, choice)
                except (NamebridgeError, ValueError) as exc:
                    log.warning("Choice %r not applicable: %s", choice, exc)
                    continue

            async with ctx.locked(candidate.key, gated=False):
                try:
                    entry = ctx.registry.add(candidate)
                except (DuplicateKeyError, DuplicateAliasError) as exc:
                    log.warning("Resolved identity still collides: %s", exc)
                    continue
                await persist_new(ctx, entry)
            return AddIdentityResult(
                outcome=AddOutcome.ADDED_AFTER_DISAMBIGUATION, key=entry.key, choice=choice
            )

    raise DisambiguationRequired(
        f"Duplicate key for {identity.key!r} unresolved after {max_attempts} attempts"
    )


def _find_collision(registry: Registry, identity: CanonicalIdentity) -> tuple[str, str] | None:
    """Return ``(contested value, owner key)`` for the first value ``registry`` already holds."""

    if identity.key in registry:
        return identity.key, identity.key
    for variant in identity.aliases.normalized_values():
        owner = registry.owner_of(variant)
        if owner is not None:
            return variant, owner
    return None


async def _ask(ctx: RegistryContext, conflict: DuplicateKeyConflict) -> DisambiguationChoice:
    if ctx.disambiguate is None:
        raise DisambiguationRequired(
            f"No disambiguation callback for duplicate key {conflict.key!r}"
        )
    choice = await ctx.disambiguate(conflict)
    if choice is None:
        raise DisambiguationRequired(f"No decision for duplicate key {conflict.key!r}")
    if not isinstance(choice, UseManualPrimary | PromoteVariant | Abandon):
        raise DisambiguationRequired(f"Unsupported disambiguation choice {choice!r}")
    return choice


def _apply_choice(
    registry: Registry,
    identity: CanonicalIdentity,
    choice: UseManualPrimary | PromoteVariant,
) -> CanonicalIdentity:
    candidate = replace(identity, aliases=identity.aliases.copy())
    aliases = candidate.aliases
    # The replaced primary collided, so it is dropped rather than demoted.
    match choice:
        case PromoteVariant(value=value):
            found = aliases.find(value)
            if found is None or found[0] is None:
                raise NotFoundError(f"{value!r} is not a variant of {identity.key!r}")
            aliases.promote(value, PRIMARY, demote_to=DemoteTarget.DISCARD)
        case UseManualPrimary(value=value) if normalize_key(value) != candidate.key:
            aliases.replace_primary(
                manual_term(value, reason=MANUAL_PRIMARY_REASON),
                demote_to=DemoteTarget.DISCARD,
            )
        case UseManualPrimary():
            pass
    for variant in aliases.normalized_values()[1:]:
        owner = registry.owner_of(variant)
        if owner is not None:
            aliases.remove(variant)
            log.info("Dropped variant %r of %r; it belongs to %r", variant, candidate.key, owner)
    return candidate
