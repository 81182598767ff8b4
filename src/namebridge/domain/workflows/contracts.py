"""Workflow contracts: disambiguation choices and workflow results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from namebridge.domain.model import IdentityKind, normalize_key

if TYPE_CHECKING:
    from namebridge.domain.matching import NearMatch, SkippedRecord
    from namebridge.domain.model import CanonicalIdentity
    from namebridge.domain.registry import SimilarIdentity


@dataclass(frozen=True, slots=True, kw_only=True)
class DuplicateKeyConflict:
    """An incoming identity that collides with a registered identity.

    ``key`` is the contested normalized value: the incoming key itself, or a
    variant (or chosen primary) that ``existing`` already owns.
    """

    key: str
    incoming: CanonicalIdentity
    existing: CanonicalIdentity
    attempt: int = 1

    @property
    def owner_key(self) -> str:
        return self.existing.key

    @property
    def promotable_values(self) -> tuple[str, ...]:
        return tuple(
            value
            for value in self.incoming.aliases.all_values()[1:]
            if normalize_key(value) != self.key
        )


# Closed set of human decisions for a duplicate key.


@dataclass(frozen=True, slots=True)
class UseManualPrimary:
    value: str


@dataclass(frozen=True, slots=True)
class PromoteVariant:
    value: str


@dataclass(frozen=True, slots=True)
class Abandon:
    reason: str = "abandoned by operator"


type DisambiguationChoice = UseManualPrimary | PromoteVariant | Abandon


class AddOutcome(StrEnum):
    ADDED = "added"
    ADDED_AFTER_DISAMBIGUATION = "added_after_disambiguation"
    ABANDONED = "abandoned"


@dataclass(frozen=True, slots=True, kw_only=True)
class AddIdentityResult:
    outcome: AddOutcome
    key: str | None
    choice: DisambiguationChoice | None = None


@dataclass(frozen=True, slots=True)
class NewIdentity:
    """Move destination meaning "spin the alias off into a brand-new identity"."""

    kind: IdentityKind | None = None


NEW_IDENTITY: Final = NewIdentity()


@dataclass(frozen=True, slots=True, kw_only=True)
class MoveAliasResult:
    value: str
    source_key: str
    destination_key: str
    created: bool
    dry_run: bool
    source_alias_count: int
    destination_alias_count: int
    # Filled on dry runs: the identities closest to the moved value.
    suggestions: tuple[SimilarIdentity, ...] = ()


@dataclass(slots=True, kw_only=True)
class IngestReport:
    created: list[str] = field(default_factory=list[str])
    merged: list[str] = field(default_factory=list[str])
    aliased: list[str] = field(default_factory=list[str])
    abandoned: list[str] = field(default_factory=list[str])
    needs_review: list[NearMatch[CanonicalIdentity]] = field(
        default_factory=list["NearMatch[CanonicalIdentity]"]
    )
    skipped: list[SkippedRecord] = field(default_factory=list["SkippedRecord"])

    def summary(self) -> dict[str, int]:
        return {
            "created": len(self.created),
            "merged": len(self.merged),
            "aliased": len(self.aliased),
            "abandoned": len(self.abandoned),
            "needs_review": len(self.needs_review),
            "skipped": len(self.skipped),
        }
