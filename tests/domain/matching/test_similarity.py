from __future__ import annotations

import pytest

from namebridge.domain.matching import (
    ClearMatch,
    MatchTier,
    NearMatch,
    NoViableMatch,
    classify_record,
    classify_score,
    compare_names,
    find_best_match,
    name_similarity,
    normalize_for_comparison,
)
from namebridge.domain.model import SourceId, SourceRecord


def _record(name: str) -> SourceRecord:
    return SourceRecord(source_id=SourceId.PHONEBOOK, name=name, source_row_index=0)


def test_normalize_keeps_ampersand_and_collapses_spaces() -> None:
    assert normalize_for_comparison(" Smith,  John & Mary. ") == "SMITH JOHN & MARY"


@pytest.mark.parametrize(
    ("left", "right", "score", "tier"),
    [
        ("JOHN SMITH", "JOHN SMITH", 1.0, MatchTier.CLEAR),
        ("JOHN SMITH", "J SMITH", 0.5, MatchTier.NEAR),
        ("JOHN SMITH", "MARY JONES", 0.0, MatchTier.NO_VIABLE),
        ("john smith", "JOHN   SMITH.", 1.0, MatchTier.CLEAR),
    ],
)
def test_compare_names(left: str, right: str, score: float, tier: MatchTier) -> None:
    comparison = compare_names(left, right)

    assert comparison.score == pytest.approx(score)
    assert comparison.tier is tier


def test_short_tokens_never_count() -> None:
    assert name_similarity("JO LI", "JO LI X") == 0.0


def test_thresholds_are_inclusive() -> None:
    assert classify_score(0.85) is MatchTier.CLEAR
    assert classify_score(0.8499) is MatchTier.NEAR
    assert classify_score(0.5) is MatchTier.NEAR
    assert classify_score(0.4999) is MatchTier.NO_VIABLE


def test_best_match_ties_keep_first_seen() -> None:
    best, score = find_best_match(
        "JOHN SMITH",
        ["ANNA SMITH", "PAUL SMITH"],
        lambda name: (name,),
    )

    assert best == "ANNA SMITH"
    assert score == 0.5


def test_best_match_uses_best_name_of_each_candidate() -> None:
    candidates = {"A": ("MARY JONES", "JOHN SMITH"), "B": ("JOHN SMYTHE",)}

    best, score = find_best_match("JOHN SMITH", candidates, lambda key: candidates[key])

    assert best == "A"
    assert score == 1.0


def test_classify_record_outcomes() -> None:
    targets = ["JOHN SMITH", "MARY JONES"]

    clear = classify_record(_record("John Smith"), targets, lambda name: (name,))
    near = classify_record(_record("PETER JONES"), targets, lambda name: (name,))
    none = classify_record(_record("ZED"), targets, lambda name: (name,))

    assert isinstance(clear, ClearMatch)
    assert clear.target == "JOHN SMITH"
    assert isinstance(near, NearMatch)
    assert near.score == 0.5
    assert isinstance(none, NoViableMatch)
    assert none.best_target is None
