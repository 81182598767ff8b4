"""Matching engine: exact natural key, name similarity, address placeholder."""

from __future__ import annotations

from .address import run_address_stage
from .contracts import (
    AddressNotImplemented,
    AmbiguousMatch,
    ClearMatch,
    DirectMatch,
    MatchConfidence,
    MatchingReport,
    MatchOutcome,
    MatchRule,
    MatchStage,
    MatchStatus,
    MatchTier,
    NearMatch,
    NoMatch,
    NoViableMatch,
    SkippedRecord,
)
from .exact import (
    MAX_FIRE_NUMBER,
    build_natural_key_index,
    extract_fire_number,
    match_by_natural_key,
    natural_key_of,
    parse_fire_number,
    run_natural_key_stage,
)
from .pipeline import run_matching
from .similarity import (
    CLEAR_MATCH_THRESHOLD,
    NEAR_MATCH_THRESHOLD,
    NameComparison,
    classify_record,
    classify_score,
    compare_names,
    find_best_match,
    name_similarity,
    normalize_for_comparison,
    run_similarity_stage,
)

__all__ = [
    "CLEAR_MATCH_THRESHOLD",
    "MAX_FIRE_NUMBER",
    "NEAR_MATCH_THRESHOLD",
    "AddressNotImplemented",
    "AmbiguousMatch",
    "ClearMatch",
    "DirectMatch",
    "MatchConfidence",
    "MatchOutcome",
    "MatchRule",
    "MatchStage",
    "MatchStatus",
    "MatchTier",
    "MatchingReport",
    "NameComparison",
    "NearMatch",
    "NoMatch",
    "NoViableMatch",
    "SkippedRecord",
    "build_natural_key_index",
    "classify_record",
    "classify_score",
    "compare_names",
    "extract_fire_number",
    "find_best_match",
    "match_by_natural_key",
    "name_similarity",
    "natural_key_of",
    "normalize_for_comparison",
    "parse_fire_number",
    "run_address_stage",
    "run_matching",
    "run_natural_key_stage",
    "run_similarity_stage",
]
