from __future__ import annotations

import pytest

from namebridge.domain.model import (
    SourceId,
    SourceOccurrence,
    create_term,
    manual_term,
    normalize_key,
)


def test_normalize_key_trims_collapses_and_upper_cases() -> None:
    assert normalize_key("  john   smith ") == "JOHN SMITH"
    assert normalize_key(1234) == "1234"


def test_create_term_records_single_provenance() -> None:
    term = create_term(
        "  John Smith ",
        SourceId.PHONEBOOK,
        source_record_index=7,
        source_record_key="acct-7",
        field_name="owner",
    )

    assert term.value == "John Smith"
    assert term.key == "JOHN SMITH"
    assert term.source_id is SourceId.PHONEBOOK
    assert term.source_record_index == 7
    assert term.source_record_key == "acct-7"
    assert term.field_name == "owner"


def test_blank_term_is_rejected() -> None:
    with pytest.raises(ValueError, match="blank"):
        create_term("   ", SourceId.PHONEBOOK, source_record_index=0)


def test_merge_accumulates_sightings_from_other_sources() -> None:
    term = create_term("JOHN SMITH", SourceId.VISION_APPRAISAL, source_record_index=1)
    other = create_term("john  smith", SourceId.PHONEBOOK, source_record_index=42)

    assert term.merge(other) is True

    assert term.value == "JOHN SMITH"
    assert term.sources == (SourceId.VISION_APPRAISAL, SourceId.PHONEBOOK)
    assert term.source_map[SourceId.PHONEBOOK] == SourceOccurrence(42)


def test_merge_keeps_first_sighting_per_source() -> None:
    term = create_term("JOHN SMITH", SourceId.PHONEBOOK, source_record_index=1)
    later = create_term("JOHN SMITH", SourceId.PHONEBOOK, source_record_index=99)

    assert term.merge(later) is False
    assert term.source_record_index == 1


def test_merge_rejects_different_values() -> None:
    term = create_term("JOHN SMITH", SourceId.PHONEBOOK, source_record_index=1)
    other = create_term("JOHN SMYTH", SourceId.VISION_APPRAISAL, source_record_index=2)

    with pytest.raises(ValueError, match="Cannot merge"):
        term.merge(other)
    assert term.sources == (SourceId.PHONEBOOK,)


def test_manual_term_is_tagged_with_reason() -> None:
    term = manual_term("JOHN Q SMITH", reason="operator fix")

    assert term.source_id is SourceId.MANUAL_EDIT
    assert term.source_record_key == "operator fix"
