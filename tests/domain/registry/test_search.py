from __future__ import annotations

import pytest

from namebridge.domain.registry import (
    edit_similarity,
    find_similar_identities,
    lookup,
    lookup_existing,
    score_identity,
)
from tests.helpers.identities import make_identity, make_registry


def test_edit_similarity_ignores_case_and_spacing() -> None:
    assert edit_similarity("jon  doe", "JON DOE") == 1.0
    assert edit_similarity("JON DOE", "JOHN DOE") == pytest.approx(0.875)


def test_score_identity_reports_best_category() -> None:
    identity = make_identity("JOHN DOE", homonyms=["JOHNNY DOE"], candidates=["JON DOE"])

    result = score_identity("JON DOE", identity)

    assert result.category == "candidates"
    assert result.matched_value == "JON DOE"
    assert result.score == 1.0
    assert set(result.category_scores) == {"primary", "homonyms", "candidates"}
    assert result.category_scores["primary"] == pytest.approx(0.875)


def test_synonyms_are_not_searched() -> None:
    registry = make_registry(
        [
            make_identity("JOHN DOE", synonyms=["JON DOE"]),
            make_identity("JANE DOE", candidates=["JON DOE JR"]),
        ]
    )

    results = find_similar_identities(registry, "JON DOE")

    assert [result.key for result in results][0] == "JOHN DOE"
    assert results[0].category == "primary"
    assert results[0].score < 1.0


def test_find_similar_identities_excludes_source_and_limits() -> None:
    registry = make_registry([make_identity(f"JOHN DOE {n}") for n in range(8)])

    results = find_similar_identities(registry, "JOHN DOE 1", exclude_key="john doe 1", limit=3)

    assert len(results) == 3
    assert "JOHN DOE 1" not in {result.key for result in results}


def test_lookup_prefers_exact_variant_then_similarity() -> None:
    registry = make_registry(
        [make_identity("JOHN DOE", homonyms=["J DOE"]), make_identity("MARY JONES")]
    )

    assert lookup(registry, "j doe") == "JOHN DOE"
    assert lookup(registry, "MARY JONESS") == "MARY JONES"
    assert lookup(registry, "ZEBULON PIKE") is None
    assert lookup_existing(registry, "MARY JONESS") is None
