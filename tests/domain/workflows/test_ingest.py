from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from namebridge.domain.matching import SkippedRecord
from namebridge.domain.model import IdentityKind, SourceId, SourceRecord
from namebridge.domain.registry import RegistryContext
from namebridge.domain.workflows import identity_from_record, ingest_records
from tests.helpers.disambiguation import SplittingNameParser
from tests.helpers.identities import make_identity, make_registry, publish

if TYPE_CHECKING:
    from collections.abc import Mapping

    from namebridge.domain.consistency import RemoteViews


def _record(
    row: int,
    name: str,
    *,
    name_fields: Mapping[str, str] | None = None,
    household: bool = False,
) -> SourceRecord:
    return SourceRecord(
        source_id=SourceId.PHONEBOOK,
        name=name,
        source_row_index=row,
        source_record_key=f"pb-{row}",
        name_fields=name_fields or {},
        household=household,
    )


def test_ingest_links_merges_and_creates(views: RemoteViews) -> None:
    registry = make_registry(
        [make_identity("JOHN SMITH", homonyms=["J SMITH"]), make_identity("MARY JONES")]
    )
    asyncio.run(publish(views, registry))
    ctx = RegistryContext(registry=registry, views=views)
    skipped = [SkippedRecord(row_index=9, reason="invalid_json", message="bad")]
    records = [
        _record(0, "j smith"),
        _record(1, "SMITH JOHN"),
        _record(2, "PETER JONES"),
        _record(3, "ZEBULON PIKE", name_fields={"first": "ZEBULON", "last": "PIKE"}),
    ]

    report = asyncio.run(ingest_records(ctx, records, skipped=skipped))

    assert report.merged == ["JOHN SMITH"]
    assert report.aliased == ["JOHN SMITH"]
    assert [outcome.record.name for outcome in report.needs_review] == ["PETER JONES"]
    assert report.needs_review[0].target.key == "MARY JONES"
    assert report.created == ["ZEBULON PIKE"]
    assert report.skipped == skipped
    assert report.summary()["created"] == 1

    john = registry.lookup_by_key("JOHN SMITH")
    assert john.aliases.homonyms[0].sources == (SourceId.VISION_APPRAISAL, SourceId.PHONEBOOK)
    assert [term.value for term in john.aliases.homonyms] == ["J SMITH", "SMITH JOHN"]
    assert registry.lookup_by_key("ZEBULON PIKE").components.last == "PIKE"

    snapshot = asyncio.run(views.load_snapshot())
    assert sorted(snapshot.entries) == ["JOHN SMITH", "MARY JONES", "ZEBULON PIKE"]
    remote_john = snapshot.entries["JOHN SMITH"].identity
    assert remote_john.aliases.all_values() == ("JOHN SMITH", "J SMITH", "SMITH JOHN")


def test_ingest_without_views_stays_local() -> None:
    ctx = RegistryContext(registry=make_registry([]))

    report = asyncio.run(ingest_records(ctx, [_record(0, "ANNA BELL"), _record(1, "anna bell")]))

    assert report.created == ["ANNA BELL"]
    assert report.merged == ["ANNA BELL"]


def test_identity_from_record_uses_parser_only_for_people() -> None:
    parser = SplittingNameParser()
    ctx = RegistryContext(registry=make_registry([]), name_parser=parser)

    person = identity_from_record(ctx, _record(0, "ANNA BELL"))
    household = identity_from_record(ctx, _record(1, "BELL FAMILY", household=True))
    company = identity_from_record(ctx, _record(2, "BELL & SONS"))

    assert person.kind is IdentityKind.PERSON
    assert person.components.first == "ANNA"
    assert household.kind is IdentityKind.HOUSEHOLD_AGGREGATE
    assert company.kind is IdentityKind.ORGANIZATION
    assert parser.calls == ["ANNA BELL"]
    assert person.primary.source_record_key == "pb-0"
