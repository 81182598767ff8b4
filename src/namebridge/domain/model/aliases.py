"""Alias sets attached to canonical identities."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final, Literal

from namebridge.domain.model.enums import AliasCategory, DemoteTarget
from namebridge.domain.model.errors import DuplicateAliasError, NotFoundError
from namebridge.domain.model.normalize import normalize_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from namebridge.domain.model.terms import AttributedTerm, TermValue

log = getLogger(__name__)

PRIMARY: Final = "primary"

type PromoteDestination = AliasCategory | Literal["primary"]
# ``None`` marks the primary term.
type AliasSlot = AliasCategory | None

CATEGORY_ORDER: Final[tuple[AliasCategory, ...]] = (
    AliasCategory.HOMONYMS,
    AliasCategory.SYNONYMS,
    AliasCategory.CANDIDATES,
)


class Aliases:
    """One primary term plus three ordered, append-only alternate sequences.

    Normalized values are unique across the primary and all categories.
    """

    __slots__ = ("_categories", "_primary", "_slots")

    def __init__(
        self,
        primary: AttributedTerm,
        *,
        homonyms: Iterable[AttributedTerm] = (),
        synonyms: Iterable[AttributedTerm] = (),
        candidates: Iterable[AttributedTerm] = (),
    ) -> None:
        self._primary = primary
        self._categories: dict[AliasCategory, list[AttributedTerm]] = {
            category: [] for category in CATEGORY_ORDER
        }
        self._slots: dict[str, AliasSlot] = {primary.key: None}
        for category, terms in (
            (AliasCategory.HOMONYMS, homonyms),
            (AliasCategory.SYNONYMS, synonyms),
            (AliasCategory.CANDIDATES, candidates),
        ):
            for term in terms:
                self.add(term, category)

    # Queries

    @property
    def primary(self) -> AttributedTerm:
        return self._primary

    @property
    def homonyms(self) -> tuple[AttributedTerm, ...]:
        return tuple(self._categories[AliasCategory.HOMONYMS])

    @property
    def synonyms(self) -> tuple[AttributedTerm, ...]:
        return tuple(self._categories[AliasCategory.SYNONYMS])

    @property
    def candidates(self) -> tuple[AttributedTerm, ...]:
        return tuple(self._categories[AliasCategory.CANDIDATES])

    def terms_in(self, category: AliasCategory) -> tuple[AttributedTerm, ...]:
        return tuple(self._categories[category])

    def all_terms(self) -> tuple[tuple[AliasSlot, AttributedTerm], ...]:
        """Primary first, then homonyms, synonyms and candidates in insertion order."""

        ordered: list[tuple[AliasSlot, AttributedTerm]] = [(None, self._primary)]
        for category in CATEGORY_ORDER:
            ordered.extend((category, term) for term in self._categories[category])
        return tuple(ordered)

    def all_values(self) -> tuple[str, ...]:
        return tuple(str(term.value) for _, term in self.all_terms())

    def normalized_values(self) -> tuple[str, ...]:
        return tuple(term.key for _, term in self.all_terms())

    def find(self, value: TermValue) -> tuple[AliasSlot, AttributedTerm] | None:
        key = normalize_key(value)
        if key not in self._slots:
            return None
        slot = self._slots[key]
        if slot is None:
            return None, self._primary
        for term in self._categories[slot]:
            if term.key == key:
                return slot, term
        raise AssertionError(f"slot index out of sync for {key!r}")

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, str | int):
            return False
        return normalize_key(value) in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def count(self) -> int:
        return len(self._slots)

    def copy(self) -> Aliases:
        """Copy the alias structure; the terms themselves are shared."""

        return Aliases(
            self._primary,
            homonyms=self.homonyms,
            synonyms=self.synonyms,
            candidates=self.candidates,
        )

    # Commands

    def add(
        self, term: AttributedTerm, category: AliasCategory = AliasCategory.SYNONYMS
    ) -> None:
        if term.key in self._slots:
            raise DuplicateAliasError(str(term.value))
        self._categories[category].append(term)
        self._slots[term.key] = category

    def merge_sighting(self, term: AttributedTerm) -> bool:
        """Merge provenance of an already-known value; return ``False`` if it is unknown."""

        found = self.find(term.value)
        if found is None:
            return False
        found[1].merge(term)
        return True

    def remove(self, value: TermValue) -> tuple[AliasCategory, AttributedTerm]:
        found = self.find(value)
        if found is None:
            raise NotFoundError(f"Alias {value!r} not found")
        slot, term = found
        if slot is None:
            raise ValueError("The primary term cannot be removed; promote a replacement first")
        self._categories[slot].remove(term)
        del self._slots[term.key]
        return slot, term

    def promote(
        self,
        value: TermValue,
        destination: PromoteDestination,
        *,
        demote_to: DemoteTarget = DemoteTarget.HOMONYMS,
    ) -> AttributedTerm:
        """Move an existing term to ``destination``.

        Promoting to ``"primary"`` puts the old primary into ``demote_to``.
        Returns the moved term.
        """

        found = self.find(value)
        if found is None:
            raise NotFoundError(f"Alias {value!r} not found")
        slot, term = found

        if destination == PRIMARY:
            if slot is None:
                return term
            self._categories[slot].remove(term)
            del self._slots[term.key]
            self.replace_primary(term, demote_to=demote_to)
            return term

        category = AliasCategory(destination)
        if slot is None:
            raise ValueError("The primary term cannot be reclassified without a replacement")
        if slot is category:
            return term
        self._categories[slot].remove(term)
        self._categories[category].append(term)
        self._slots[term.key] = category
        return term

    def replace_primary(
        self, term: AttributedTerm, *, demote_to: DemoteTarget = DemoteTarget.HOMONYMS
    ) -> AttributedTerm:
        """Install a term that is not yet part of this set as primary; return the old one."""

        if term.key in self._slots:
            raise DuplicateAliasError(str(term.value))
        old = self._primary
        del self._slots[old.key]
        self._primary = term
        self._slots[term.key] = None

        category = demote_to.category
        if category is None:
            log.info("Discarded former primary alias %r", old.value)
        else:
            self._categories[category].append(old)
            self._slots[old.key] = category
        return old

    def __repr__(self) -> str:
        return f"Aliases(primary={self._primary.value!r}, count={len(self._slots)})"
