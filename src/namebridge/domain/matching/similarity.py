"""Stage B: word-overlap name similarity."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from namebridge.domain.matching.contracts import (
    ClearMatch,
    MatchTier,
    NearMatch,
    NoViableMatch,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from namebridge.domain.matching.contracts import SimilarityOutcome
    from namebridge.domain.model import SourceRecord

CLEAR_MATCH_THRESHOLD: Final = 0.85
NEAR_MATCH_THRESHOLD: Final = 0.5
MIN_TOKEN_LENGTH: Final = 3

_DISALLOWED: Final = re.compile(r"[^A-Z0-9&\s]")
_WHITESPACE: Final = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class NameComparison:
    score: float
    tier: MatchTier


def normalize_for_comparison(name: str) -> str:
    """Upper-case, drop everything but letters, digits, ``&`` and spaces, collapse spaces."""

    stripped = _DISALLOWED.sub("", name.upper())
    return _WHITESPACE.sub(" ", stripped).strip()


def name_similarity(left: str, right: str) -> float:
    """Share of tokens (longer than two characters) found in both names.

    Divided by the longer token list; identical normalized names score 1.0.
    """

    clean_left = normalize_for_comparison(left)
    clean_right = normalize_for_comparison(right)
    if not clean_left or not clean_right:
        return 0.0
    if clean_left == clean_right:
        return 1.0
    left_tokens = clean_left.split(" ")
    right_tokens = set(clean_right.split(" "))
    overlap = sum(
        1 for token in left_tokens if len(token) >= MIN_TOKEN_LENGTH and token in right_tokens
    )
    return overlap / max(len(left_tokens), len(right_tokens))


def classify_score(score: float) -> MatchTier:
    if score >= CLEAR_MATCH_THRESHOLD:
        return MatchTier.CLEAR
    if score >= NEAR_MATCH_THRESHOLD:
        return MatchTier.NEAR
    return MatchTier.NO_VIABLE


def compare_names(left: str, right: str) -> NameComparison:
    score = name_similarity(left, right)
    return NameComparison(score=score, tier=classify_score(score))


def find_best_match[T](
    name: str,
    candidates: Iterable[T],
    name_of: Callable[[T], Iterable[str]],
) -> tuple[T | None, float]:
    """Scan every candidate (no early exit); ties keep the first one seen.

    ``name_of`` may yield several names per candidate (e.g. all alias values);
    the candidate's score is its best name.
    """

    best: T | None = None
    best_score = 0.0
    for candidate in candidates:
        score = max((name_similarity(name, other) for other in name_of(candidate)), default=0.0)
        if score > best_score:
            best, best_score = candidate, score
    return best, best_score


def classify_record[T](
    record: SourceRecord,
    candidates: Iterable[T],
    name_of: Callable[[T], Iterable[str]],
) -> SimilarityOutcome[T]:
    best, score = find_best_match(record.name, candidates, name_of)
    if best is None:
        return NoViableMatch(record=record)
    match classify_score(score):
        case MatchTier.CLEAR:
            return ClearMatch(record=record, target=best, score=score)
        case MatchTier.NEAR:
            return NearMatch(record=record, target=best, score=score)
        case MatchTier.NO_VIABLE:
            return NoViableMatch(record=record, best_target=best, score=score)


def run_similarity_stage(
    records: Iterable[SourceRecord],
    targets: Iterable[SourceRecord],
) -> list[SimilarityOutcome[SourceRecord]]:
    pool = tuple(targets)
    return [classify_record(record, pool, lambda target: (target.name,)) for record in records]
