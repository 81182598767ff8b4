"""Translate between domain views and their pydantic payloads."""

from __future__ import annotations

from typing import TYPE_CHECKING

from namebridge.domain.consistency import (
    BulkSnapshot,
    IndexEntry,
    RemoteIndex,
    SnapshotEntry,
)
from namebridge.domain.model import (
    Aliases,
    AttributedTerm,
    CanonicalIdentity,
    NameComponents,
    SourceId,
    SourceOccurrence,
)

from .schema import (
    AliasesPayload,
    ComponentsPayload,
    IdentityPayload,
    IndexEntryPayload,
    IndexPayload,
    SnapshotEntryPayload,
    SnapshotPayload,
    SourceOccurrencePayload,
    TermPayload,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


def term_to_payload(term: AttributedTerm) -> TermPayload:
    return TermPayload(
        value=term.value,
        field_name=term.field_name,
        source_map=[
            SourceOccurrencePayload(
                source=source, index=occurrence.index, record_key=occurrence.record_key
            )
            for source, occurrence in term.source_map.items()
        ],
    )


def term_from_payload(payload: TermPayload) -> AttributedTerm:
    # First occurrence per source wins, as with live sightings.
    source_map: dict[SourceId, SourceOccurrence] = {}
    for item in payload.source_map:
        source_map.setdefault(item.source, SourceOccurrence(item.index, item.record_key))
    return AttributedTerm(
        _value=payload.value, field_name=payload.field_name, _source_map=source_map
    )


def _terms(payloads: Iterable[TermPayload]) -> list[AttributedTerm]:
    return [term_from_payload(payload) for payload in payloads]


def identity_to_payload(identity: CanonicalIdentity) -> IdentityPayload:
    aliases = identity.aliases
    components = identity.components
    return IdentityPayload(
        kind=identity.kind,
        components=ComponentsPayload(
            first=components.first, last=components.last, other=components.other
        ),
        aliases=AliasesPayload(
            primary=term_to_payload(aliases.primary),
            homonyms=[term_to_payload(term) for term in aliases.homonyms],
            synonyms=[term_to_payload(term) for term in aliases.synonyms],
            candidates=[term_to_payload(term) for term in aliases.candidates],
        ),
    )


def identity_from_payload(payload: IdentityPayload) -> CanonicalIdentity:
    aliases = Aliases(
        term_from_payload(payload.aliases.primary),
        homonyms=_terms(payload.aliases.homonyms),
        synonyms=_terms(payload.aliases.synonyms),
        candidates=_terms(payload.aliases.candidates),
    )
    components = NameComponents(
        first=payload.components.first,
        last=payload.components.last,
        other=payload.components.other,
    )
    return CanonicalIdentity(aliases=aliases, kind=payload.kind, components=components)


def snapshot_to_payload(snapshot: BulkSnapshot) -> SnapshotPayload:
    return SnapshotPayload(
        created=snapshot.created_at,
        count=snapshot.count,
        entries={
            key: SnapshotEntryPayload(
                identity=identity_to_payload(entry.identity),
                created=entry.created_at,
                last_modified=entry.last_modified_at,
            )
            for key, entry in sorted(snapshot.entries.items())
        },
    )


def snapshot_from_payload(payload: SnapshotPayload) -> BulkSnapshot:
    return BulkSnapshot(
        created_at=payload.created,
        entries={
            key: SnapshotEntry(
                identity=identity_from_payload(entry.identity),
                created_at=entry.created,
                last_modified_at=entry.last_modified,
            )
            for key, entry in payload.entries.items()
        },
    )


def index_to_payload(index: RemoteIndex) -> IndexPayload:
    return IndexPayload(
        created=index.created_at,
        last_modified=index.last_modified_at,
        folder=index.folder,
        count=index.count,
        entries={
            key: IndexEntryPayload(
                location=entry.remote_location,
                created=entry.created_at,
                last_modified=entry.last_modified_at,
            )
            for key, entry in sorted(index.entries.items())
        },
    )


def index_from_payload(payload: IndexPayload) -> RemoteIndex:
    return RemoteIndex(
        created_at=payload.created,
        last_modified_at=payload.last_modified,
        folder=payload.folder,
        entries={
            key: IndexEntry(
                identity_key=key,
                remote_location=entry.location,
                created_at=entry.created,
                last_modified_at=entry.last_modified,
            )
            for key, entry in payload.entries.items()
        },
    )
