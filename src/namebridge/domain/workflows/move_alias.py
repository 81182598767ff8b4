"""Move an alternate alias to another identity, or spin it off into a new one."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.model import (
    AlreadyPresentError,
    Aliases,
    AliasCategory,
    CanonicalIdentity,
    DuplicateKeyError,
    NameComponents,
    NamebridgeError,
    NotFoundError,
    RemoteStoreError,
    expects_name_components,
    infer_identity_kind,
)
from namebridge.domain.registry import find_similar_identities
from namebridge.domain.workflows.contracts import MoveAliasResult, NewIdentity
from namebridge.domain.workflows.persist import persist_new, persist_updated

if TYPE_CHECKING:
    from namebridge.domain.model import AttributedTerm, TermValue
    from namebridge.domain.registry import RegistryContext, RegistryEntry

log = getLogger(__name__)

MOVE_SUGGESTION_LIMIT = 5


async def move_alias(
    ctx: RegistryContext,
    source_key: str,
    value: TermValue,
    destination: str | NewIdentity,
    *,
    dry_run: bool = False,
) -> MoveAliasResult:
    """Remove ``value`` from ``source_key`` and attach it elsewhere.

    An existing destination receives the term as a candidate; a
    :class:`NewIdentity` destination makes it the primary of a fresh identity.
    The destination is written before the source, so a half-finished move
    leaves the value on both identities rather than on neither.

    A dry run also lists the identities most similar to ``value`` (the
    source excluded) as candidate destinations.
    """

    registry = ctx.registry
    source = registry.entry(source_key)
    found = source.identity.aliases.find(value)
    if found is None:
        raise NotFoundError(f"{source.key!r} has no alias {value!r}")
    slot, term = found
    if slot is None:
        raise ValueError(f"{value!r} is the primary of {source.key!r}; change the primary first")

    creating = isinstance(destination, NewIdentity)
    if creating:
        destination_key = term.key
        if destination_key in registry:
            raise DuplicateKeyError(destination_key)
        destination_count = 1
    else:
        target = registry.entry(destination)
        destination_key = target.key
        if destination_key == source.key:
            raise ValueError("Source and destination are the same identity")
        if value in target.identity.aliases:
            raise AlreadyPresentError(str(value), destination_key=destination_key)
        destination_count = target.identity.aliases.count + 1

    if dry_run:
        log.info("Dry run: would move %r from %r to %r", value, source.key, destination_key)
        suggestions = find_similar_identities(
            registry, value, exclude_key=source.key, limit=MOVE_SUGGESTION_LIMIT
        )
        return MoveAliasResult(
            value=str(term.value),
            source_key=source.key,
            destination_key=destination_key,
            created=creating,
            dry_run=True,
            source_alias_count=source.identity.aliases.count - 1,
            destination_alias_count=destination_count,
            suggestions=tuple(suggestions),
        )

    async with ctx.locked(source.key, destination_key):
        registry.remove_alias(source.key, value)
        try:
            if isinstance(destination, NewIdentity):
                target = registry.add(_spin_off(ctx, term, destination))
            else:
                target = registry.add_alias(destination_key, term, AliasCategory.CANDIDATES)
        except NamebridgeError:
            registry.add_alias(source.key, term, slot)
            raise
        log.info("Moved alias %r from %r to %r", term.value, source.key, target.key)
        await _persist_move(ctx, source, target, created=creating)

    return MoveAliasResult(
        value=str(term.value),
        source_key=source.key,
        destination_key=target.key,
        created=creating,
        dry_run=False,
        source_alias_count=source.identity.aliases.count,
        destination_alias_count=target.identity.aliases.count,
    )


def _spin_off(
    ctx: RegistryContext, term: AttributedTerm, destination: NewIdentity
) -> CanonicalIdentity:
    name = str(term.value)
    kind = destination.kind or infer_identity_kind([name])
    components = NameComponents()
    if ctx.name_parser is not None and expects_name_components(kind):
        components = ctx.name_parser(name)
    return CanonicalIdentity(aliases=Aliases(term), kind=kind, components=components)


async def _persist_move(
    ctx: RegistryContext,
    source: RegistryEntry,
    target: RegistryEntry,
    *,
    created: bool,
) -> None:
    write_target = persist_new if created else persist_updated
    try:
        await write_target(ctx, target)
    except RemoteStoreError:
        log.error("Writing destination %r failed; source %r left untouched", target.key, source.key)
        raise
    try:
        await persist_updated(ctx, source)
    except RemoteStoreError as exc:
        log.error("Writing source %r failed after destination %r: %s", source.key, target.key, exc)
        raise RemoteStoreError(
            f"Alias move only partially persisted: {target.key!r} written, {source.key!r} not",
            location=source.remote_location,
        ) from exc
