"""Derived variant -> identity key lookup."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from namebridge.domain.model.normalize import normalize_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from namebridge.domain.model import CanonicalIdentity, TermValue


class VariantCache:
    """Maps every normalized alias value to the key of the identity that owns it.

    Never authoritative. Appends (a new identity, a new alias) update it in
    place; removals and re-keys rebuild it from the identities. Primaries always
    win; for alternates the first mapping seen is kept.
    """

    __slots__ = ("_owners",)

    def __init__(self) -> None:
        self._owners: dict[str, str] = {}

    @classmethod
    def build(cls, identities: Iterable[CanonicalIdentity]) -> VariantCache:
        cache = cls()
        cache.rebuild(identities)
        return cache

    def rebuild(self, identities: Iterable[CanonicalIdentity]) -> None:
        snapshot = tuple(identities)
        owners: dict[str, str] = {}
        for identity in snapshot:
            owners[identity.key] = identity.key
        for identity in snapshot:
            for variant in identity.aliases.normalized_values()[1:]:
                owners.setdefault(variant, identity.key)
        self._owners = owners

    def add(self, identity: CanonicalIdentity) -> None:
        self._owners[identity.key] = identity.key
        for variant in identity.aliases.normalized_values()[1:]:
            self._owners.setdefault(variant, identity.key)

    def add_variant(self, value: TermValue, key: str) -> None:
        self._owners.setdefault(normalize_key(value), key)

    def get(self, value: TermValue) -> str | None:
        return self._owners.get(normalize_key(value))

    def __contains__(self, value: object) -> bool:
        return isinstance(value, str | int) and normalize_key(value) in self._owners

    def __len__(self) -> int:
        return len(self._owners)

    def items(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._owners.items())


def find_variant_conflicts(identities: Iterable[CanonicalIdentity]) -> dict[str, tuple[str, ...]]:
    """Return variants claimed by more than one identity, with the claiming keys."""

    claims: defaultdict[str, list[str]] = defaultdict(list)
    for identity in identities:
        for variant in identity.aliases.normalized_values():
            claims[variant].append(identity.key)
    return {variant: tuple(keys) for variant, keys in claims.items() if len(keys) > 1}
