"""Read source records from JSON Lines files.

Bad lines never abort a batch: each one becomes a ``SkippedRecord`` carrying a
reason code, the way per-record ``ParseError``s are surfaced elsewhere.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from namebridge.domain.matching import SkippedRecord, parse_fire_number
from namebridge.domain.model import ParseError, SourceRecord

from .schema import SourceRecordPayload

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

log = getLogger(__name__)

INVALID_JSON = "invalid_json"
INVALID_RECORD = "invalid_record"
INVALID_FIRE_NUMBER = "invalid_fire_number"


@dataclass(slots=True)
class FeedBatch:
    records: list[SourceRecord] = field(default_factory=list[SourceRecord])
    skipped: list[SkippedRecord] = field(default_factory=list[SkippedRecord])


def parse_line(line: str, *, row_index: int) -> SourceRecord:
    """Parse one feed line; raise ``ParseError`` with a reason code on bad input."""

    try:
        raw = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Line is not JSON: {exc.msg}", reason=INVALID_JSON, row_index=row_index
        ) from exc
    try:
        payload = SourceRecordPayload.model_validate(raw)
    except ValidationError as exc:
        fields = ", ".join(sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]}))
        raise ParseError(
            f"Invalid record fields: {fields or 'record'}",
            reason=INVALID_RECORD,
            row_index=row_index,
        ) from exc

    natural_key: int | None = None
    if payload.fire_number is not None:
        natural_key = parse_fire_number(payload.fire_number)
        if natural_key is None:
            raise ParseError(
                f"Fire number {payload.fire_number!r} out of range",
                reason=INVALID_FIRE_NUMBER,
                row_index=row_index,
            )

    name_fields = {
        key: value
        for key, value in (
            ("first", payload.first),
            ("last", payload.last),
            ("other", payload.other),
        )
        if value is not None
    }
    return SourceRecord(
        source_id=payload.source,
        name=payload.name,
        source_row_index=payload.row if payload.row is not None else row_index,
        source_record_key=payload.record_key,
        natural_key=natural_key,
        name_fields=name_fields,
        address=payload.address,
        household=payload.household,
    )


def iter_lines(lines: Iterable[str]) -> Iterator[SourceRecord | SkippedRecord]:
    for row_index, line in enumerate(lines):
        if not line.strip():
            continue
        try:
            yield parse_line(line, row_index=row_index)
        except ParseError as exc:
            log.warning("Skipping feed line %d (%s): %s", row_index, exc.reason, exc)
            yield SkippedRecord(row_index=exc.row_index, reason=exc.reason, message=str(exc))


def read_lines(lines: Iterable[str]) -> FeedBatch:
    batch = FeedBatch()
    for item in iter_lines(lines):
        if isinstance(item, SkippedRecord):
            batch.skipped.append(item)
        else:
            batch.records.append(item)
    log.info("Read %d record(s), skipped %d", len(batch.records), len(batch.skipped))
    return batch


def read_jsonl(path: Path) -> FeedBatch:
    with path.open(encoding="utf-8") as handle:
        return read_lines(handle)
