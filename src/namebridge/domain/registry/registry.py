"""In-memory registry of canonical identities keyed by normalized primary value."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.model import (
    PRIMARY,
    AliasCategory,
    DuplicateAliasError,
    DuplicateKeyError,
    KeyCollisionError,
    NotFoundError,
    manual_term,
    normalize_key,
)
from namebridge.domain.registry.variant_cache import VariantCache

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from namebridge.domain.model import (
        AttributedTerm,
        CanonicalIdentity,
        DemoteTarget,
        TermValue,
    )

log = getLogger(__name__)

PRIMARY_CHANGE_REASON = "primary_alias_change"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, kw_only=True)
class RegistryEntry:
    identity: CanonicalIdentity
    created_at: datetime
    last_modified_at: datetime
    remote_location: str | None = None

    @property
    def key(self) -> str:
        return self.identity.key


@dataclass(frozen=True, slots=True)
class RegistryStats:
    identities: int
    homonyms: int
    synonyms: int
    candidates: int
    variants: int


class Registry:
    """Keyed collection of canonical identities plus the derived variant cache."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._entries: dict[str, RegistryEntry] = {}
        self._variants = VariantCache()
        self._clock = clock

    # Lookups

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_key(key) in self._entries

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(tuple(self._entries.values()))

    @property
    def variant_cache(self) -> VariantCache:
        return self._variants

    def get(self, key: str) -> RegistryEntry | None:
        return self._entries.get(normalize_key(key))

    def entry(self, key: str) -> RegistryEntry:
        entry = self.get(key)
        if entry is None:
            raise NotFoundError(f"No identity with key {key!r}")
        return entry

    def lookup_by_key(self, key: str) -> CanonicalIdentity:
        return self.entry(key).identity

    def lookup_by_variant(self, value: TermValue) -> str:
        owner = self._variants.get(value)
        if owner is None:
            raise NotFoundError(f"No identity owns variant {value!r}")
        return owner

    def owner_of(self, value: TermValue) -> str | None:
        return self._variants.get(value)

    def keys(self) -> list[str]:
        return sorted(self._entries)

    def identities(self) -> tuple[CanonicalIdentity, ...]:
        return tuple(entry.identity for entry in self._entries.values())

    def find_by_last_name(self, last_name: str) -> list[CanonicalIdentity]:
        wanted = normalize_key(last_name)
        return [
            identity
            for identity in self.identities()
            if identity.components.last and normalize_key(identity.components.last) == wanted
        ]

    def find_by_pattern(self, pattern: str | re.Pattern[str]) -> list[CanonicalIdentity]:
        """Identities with any alias value matching ``pattern`` (case-insensitive)."""

        regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, re.IGNORECASE)
        return [
            identity
            for identity in self.identities()
            if any(regex.search(value) for value in identity.aliases.all_values())
        ]

    def stats(self) -> RegistryStats:
        identities = self.identities()
        return RegistryStats(
            identities=len(identities),
            homonyms=sum(len(i.aliases.homonyms) for i in identities),
            synonyms=sum(len(i.aliases.synonyms) for i in identities),
            candidates=sum(len(i.aliases.candidates) for i in identities),
            variants=len(self._variants),
        )

    # Commands

    def add(
        self,
        identity: CanonicalIdentity,
        *,
        remote_location: str | None = None,
    ) -> RegistryEntry:
        """Insert a new identity; an existing key is a hard stop, never a merge."""

        key = identity.key
        if key in self._entries:
            raise DuplicateKeyError(key)
        for variant in identity.aliases.normalized_values():
            owner = self._variants.get(variant)
            if owner is not None:
                raise DuplicateAliasError(variant, owner_key=owner)
        now = self._clock()
        entry = RegistryEntry(
            identity=identity,
            remote_location=remote_location,
            created_at=now,
            last_modified_at=now,
        )
        self._entries[key] = entry
        self._variants.add(identity)
        return entry

    def restore(self, entries: Iterable[RegistryEntry]) -> None:
        """Load previously persisted entries, e.g. from the bulk snapshot."""

        for entry in entries:
            if entry.key in self._entries:
                raise DuplicateKeyError(entry.key)
            self._entries[entry.key] = entry
        self.rebuild_variant_cache()

    def change_primary(
        self,
        key: str,
        new_primary_value: TermValue,
        demote_to: DemoteTarget,
    ) -> RegistryEntry:
        """Make ``new_primary_value`` the primary and re-key the identity.

        A value already in the identity's alternates is promoted with its
        provenance; anything else becomes a manual-edit term.
        """

        entry = self.entry(key)
        identity = entry.identity
        old_key = identity.key
        new_key = normalize_key(new_primary_value)
        if new_key == old_key:
            return entry

        holder = self._entries.get(new_key)
        if holder is not None and holder.identity is not identity:
            raise KeyCollisionError(new_key, existing_key=old_key)
        owner = self._variants.get(new_key)
        if owner is not None and owner != old_key:
            raise KeyCollisionError(new_key, existing_key=old_key)

        if new_primary_value in identity.aliases:
            identity.aliases.promote(new_primary_value, PRIMARY, demote_to=demote_to)
        else:
            identity.aliases.replace_primary(
                manual_term(new_primary_value, reason=PRIMARY_CHANGE_REASON),
                demote_to=demote_to,
            )

        del self._entries[old_key]
        self._entries[new_key] = entry
        entry.last_modified_at = self._clock()
        self.rebuild_variant_cache()
        log.info("Re-keyed identity %r -> %r", old_key, new_key)
        return entry

    def add_alias(
        self,
        key: str,
        term: AttributedTerm,
        category: AliasCategory = AliasCategory.SYNONYMS,
    ) -> RegistryEntry:
        entry = self.entry(key)
        owner = self._variants.get(term.key)
        if owner is not None and owner != entry.key:
            raise DuplicateAliasError(term.key, owner_key=owner)
        entry.identity.aliases.add(term, category)
        entry.last_modified_at = self._clock()
        self._variants.add_variant(term.key, entry.key)
        return entry

    def remove_alias(self, key: str, value: TermValue) -> tuple[AliasCategory, AttributedTerm]:
        entry = self.entry(key)
        removed = entry.identity.aliases.remove(value)
        self._modified(entry)
        return removed

    def merge_sighting(self, term: AttributedTerm) -> str | None:
        """Merge provenance into whichever identity owns ``term``'s value."""

        owner = self._variants.get(term.key)
        if owner is None:
            return None
        entry = self._entries[owner]
        if entry.identity.aliases.merge_sighting(term):
            entry.last_modified_at = self._clock()
        return owner

    def set_remote_location(self, key: str, location: str | None) -> None:
        self.entry(key).remote_location = location

    def touch(self, key: str) -> None:
        self.entry(key).last_modified_at = self._clock()

    def discard(self, key: str, *, reason: str) -> RegistryEntry:
        """Explicitly drop an identity. The only way an identity ever leaves the registry."""

        entry = self.entry(key)
        del self._entries[entry.key]
        self.rebuild_variant_cache()
        log.warning("Discarded identity %r (%s)", entry.key, reason)
        return entry

    def rebuild_variant_cache(self) -> None:
        self._variants.rebuild(self.identities())

    def _modified(self, entry: RegistryEntry) -> None:
        entry.last_modified_at = self._clock()
        self.rebuild_variant_cache()
