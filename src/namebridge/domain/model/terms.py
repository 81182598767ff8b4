"""Provenance-tagged terms.

A term's value never changes after construction. Further sightings of the same
(normalized) value in other sources are merged into its source map instead of
creating a second term.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from namebridge.domain.model.enums import SourceId
from namebridge.domain.model.normalize import normalize_key

if TYPE_CHECKING:
    from collections.abc import Mapping

type TermValue = str | int

MANUAL_EDIT_INDEX = -1


@dataclass(frozen=True, slots=True)
class SourceOccurrence:
    """Where in one source a term was seen."""

    index: int
    record_key: str | None = None


@dataclass(eq=False, kw_only=True)
class AttributedTerm:
    _value: TermValue
    field_name: str
    _source_map: dict[SourceId, SourceOccurrence] = field(
        default_factory=dict["SourceId", "SourceOccurrence"], repr=False
    )

    def __post_init__(self) -> None:
        if isinstance(self._value, str) and not self._value.strip():
            raise ValueError("Term value must not be blank")
        if not self._source_map:
            raise ValueError("Term needs at least one source")

    @property
    def value(self) -> TermValue:
        return self._value

    @property
    def key(self) -> str:
        return normalize_key(self._value)

    @property
    def source_map(self) -> Mapping[SourceId, SourceOccurrence]:
        return MappingProxyType(self._source_map)

    @property
    def sources(self) -> tuple[SourceId, ...]:
        return tuple(self._source_map)

    @property
    def source_id(self) -> SourceId:
        return next(iter(self._source_map))

    @property
    def source_record_index(self) -> int:
        return self._source_map[self.source_id].index

    @property
    def source_record_key(self) -> str | None:
        return self._source_map[self.source_id].record_key

    def add_source(self, source_id: SourceId, occurrence: SourceOccurrence) -> bool:
        """Record a sighting in ``source_id``; the first sighting per source is kept."""

        if source_id in self._source_map:
            return False
        self._source_map[source_id] = occurrence
        return True

    def merge(self, other: AttributedTerm) -> bool:
        """Merge ``other``'s provenance when both terms carry the same normalized value."""

        if other.key != self.key:
            raise ValueError(f"Cannot merge provenance of {other.value!r} into {self.value!r}")
        added = False
        for source_id, occurrence in other.source_map.items():
            added = self.add_source(source_id, occurrence) or added
        return added

    def __repr__(self) -> str:
        sources = ",".join(self._source_map)
        return f"AttributedTerm({self._value!r}, field={self.field_name!r}, sources={sources})"


def create_term(
    value: TermValue,
    source_id: SourceId,
    *,
    source_record_index: int,
    source_record_key: str | None = None,
    field_name: str = "name",
) -> AttributedTerm:
    """Create a term observed once in ``source_id``."""

    if isinstance(value, str):
        value = value.strip()
    return AttributedTerm(
        _value=value,
        field_name=field_name,
        _source_map={source_id: SourceOccurrence(source_record_index, source_record_key)},
    )


def manual_term(value: TermValue, *, reason: str, field_name: str = "name") -> AttributedTerm:
    """Create a term typed in by an operator rather than read from a source."""

    return create_term(
        value,
        SourceId.MANUAL_EDIT,
        source_record_index=MANUAL_EDIT_INDEX,
        source_record_key=reason,
        field_name=field_name,
    )
