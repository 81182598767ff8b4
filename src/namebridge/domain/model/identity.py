"""Canonical identities (one real-world person, household or organization)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, assert_never

from namebridge.domain.model.enums import IdentityKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from namebridge.domain.model.aliases import Aliases
    from namebridge.domain.model.terms import AttributedTerm

_ORGANIZATION_MARKER: Final = re.compile(r"&|\bAND\b", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class NameComponents:
    """Structured name parts produced by the external name parser."""

    first: str | None = None
    last: str | None = None
    other: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.first or self.last or self.other)


@dataclass(eq=False, kw_only=True)
class CanonicalIdentity:
    aliases: Aliases
    kind: IdentityKind = IdentityKind.PERSON
    components: NameComponents = field(default_factory=NameComponents)

    @property
    def key(self) -> str:
        # Always derived, so it cannot drift from the primary term.
        return self.aliases.primary.key

    @property
    def primary(self) -> AttributedTerm:
        return self.aliases.primary

    def __repr__(self) -> str:
        count = self.aliases.count
        return f"CanonicalIdentity(key={self.key!r}, kind={self.kind}, aliases={count})"


def expects_name_components(kind: IdentityKind) -> bool:
    """Whether the name parser should be asked for components of this kind."""

    match kind:
        case IdentityKind.PERSON:
            return True
        case IdentityKind.HOUSEHOLD_AGGREGATE:
            return False
        case IdentityKind.ORGANIZATION:
            return False
        case _:
            assert_never(kind)


def infer_identity_kind(name_parts: Iterable[str], *, household: bool = False) -> IdentityKind:
    """Classify a record from its name fields.

    A name part containing ``&`` or the word ``and`` marks a non-human entity;
    otherwise the household flag decides between aggregate and person.
    """

    if any(_ORGANIZATION_MARKER.search(part) for part in name_parts if part):
        return IdentityKind.ORGANIZATION
    if household:
        return IdentityKind.HOUSEHOLD_AGGREGATE
    return IdentityKind.PERSON
