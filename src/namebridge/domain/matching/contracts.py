"""Matching outcomes.

Each outcome keeps the record it classifies plus the stage and rule that
produced it, so merged buckets stay auditable.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from namebridge.domain.model import SourceRecord


class MatchStage(StrEnum):
    NATURAL_KEY = "natural_key"
    NAME_SIMILARITY = "name_similarity"
    ADDRESS = "address"


class MatchConfidence(StrEnum):
    HIGH = "high"
    REVIEW_NEEDED = "review_needed"


class MatchTier(StrEnum):
    """Similarity-score tiers."""

    CLEAR = "clear"
    NEAR = "near"
    NO_VIABLE = "no_viable"


class MatchRule(StrEnum):
    """Reason codes attached to every outcome."""

    NO_NATURAL_KEY = "no_natural_key"
    NATURAL_KEY_NOT_FOUND = "natural_key_not_found"
    NATURAL_KEY_DIRECT = "natural_key_direct"
    MULTIPLE_TARGETS_PER_NATURAL_KEY = "multiple_targets_per_natural_key"
    NAME_CLEAR_MATCH = "name_clear_match"
    NAME_NEAR_MATCH = "name_near_match"
    NAME_NO_VIABLE_MATCH = "name_no_viable_match"
    ADDRESS_MATCHING_NOT_IMPLEMENTED = "address_matching_not_implemented"


class MatchStatus(StrEnum):
    NO_MATCH = "no_match"
    DIRECT = "direct"
    AMBIGUOUS = "ambiguous"
    CLEAR = "clear"
    NEAR = "near"
    NO_VIABLE = "no_viable"
    ADDRESS_NOT_IMPLEMENTED = "address_not_implemented"


# Stage A


@dataclass(slots=True, kw_only=True)
class NoMatch:
    """Stage A found no target; the record falls through to Stage B."""

    record: SourceRecord
    rule: MatchRule
    stage: MatchStage = MatchStage.NATURAL_KEY
    status: Literal[MatchStatus.NO_MATCH] = MatchStatus.NO_MATCH


@dataclass(slots=True, kw_only=True)
class DirectMatch[T]:
    record: SourceRecord
    target: T
    natural_key: int
    confidence: MatchConfidence = MatchConfidence.HIGH
    rule: MatchRule = MatchRule.NATURAL_KEY_DIRECT
    stage: MatchStage = MatchStage.NATURAL_KEY
    status: Literal[MatchStatus.DIRECT] = MatchStatus.DIRECT


@dataclass(slots=True, kw_only=True)
class AmbiguousMatch[T]:
    """Several targets share the natural key; needs owner clustering, not auto-resolution."""

    record: SourceRecord
    targets: tuple[T, ...]
    natural_key: int
    requires_clustering: bool = True
    confidence: MatchConfidence = MatchConfidence.REVIEW_NEEDED
    rule: MatchRule = MatchRule.MULTIPLE_TARGETS_PER_NATURAL_KEY
    stage: MatchStage = MatchStage.NATURAL_KEY
    status: Literal[MatchStatus.AMBIGUOUS] = MatchStatus.AMBIGUOUS

    def __post_init__(self) -> None:
        if len(self.targets) < 2:
            raise ValueError("Ambiguous match must include at least two targets")


# Stage B


@dataclass(slots=True, kw_only=True)
class ClearMatch[T]:
    record: SourceRecord
    target: T
    score: float
    confidence: MatchConfidence = MatchConfidence.HIGH
    rule: MatchRule = MatchRule.NAME_CLEAR_MATCH
    stage: MatchStage = MatchStage.NAME_SIMILARITY
    status: Literal[MatchStatus.CLEAR] = MatchStatus.CLEAR


@dataclass(slots=True, kw_only=True)
class NearMatch[T]:
    """Plausible but never auto-applied."""

    record: SourceRecord
    target: T
    score: float
    confidence: MatchConfidence = MatchConfidence.REVIEW_NEEDED
    rule: MatchRule = MatchRule.NAME_NEAR_MATCH
    stage: MatchStage = MatchStage.NAME_SIMILARITY
    status: Literal[MatchStatus.NEAR] = MatchStatus.NEAR


@dataclass(slots=True, kw_only=True)
class NoViableMatch[T]:
    record: SourceRecord
    best_target: T | None = None
    score: float = 0.0
    rule: MatchRule = MatchRule.NAME_NO_VIABLE_MATCH
    stage: MatchStage = MatchStage.NAME_SIMILARITY
    status: Literal[MatchStatus.NO_VIABLE] = MatchStatus.NO_VIABLE


# Stage C


@dataclass(slots=True, kw_only=True)
class AddressNotImplemented:
    """Terminal "not yet handled" outcome; the record is kept, not dropped."""

    record: SourceRecord
    rule: MatchRule = MatchRule.ADDRESS_MATCHING_NOT_IMPLEMENTED
    stage: MatchStage = MatchStage.ADDRESS
    status: Literal[MatchStatus.ADDRESS_NOT_IMPLEMENTED] = MatchStatus.ADDRESS_NOT_IMPLEMENTED


type NaturalKeyOutcome[T] = DirectMatch[T] | AmbiguousMatch[T] | NoMatch
type SimilarityOutcome[T] = ClearMatch[T] | NearMatch[T] | NoViableMatch[T]
type MatchOutcome[T] = NaturalKeyOutcome[T] | SimilarityOutcome[T] | AddressNotImplemented
type AutoApplyOutcome[T] = DirectMatch[T] | ClearMatch[T]
type ReviewOutcome[T] = AmbiguousMatch[T] | NearMatch[T]


@dataclass(frozen=True, slots=True, kw_only=True)
class SkippedRecord:
    """A source row that could not be parsed; surfaced by reason code."""

    row_index: int | None
    reason: str
    message: str


@dataclass(slots=True, kw_only=True)
class MatchingReport[T]:
    auto_apply: list[AutoApplyOutcome[T]] = field(default_factory=list)
    needs_review: list[ReviewOutcome[T]] = field(default_factory=list)
    unhandled: list[AddressNotImplemented] = field(default_factory=list)
    skipped: list[SkippedRecord] = field(default_factory=list)
    stage_results: dict[MatchStage, list[MatchOutcome[T]]] = field(default_factory=dict)

    def summary(self) -> dict[str, int]:
        counts: Counter[str] = Counter()
        for outcomes in self.stage_results.values():
            counts.update(outcome.status.value for outcome in outcomes)
        return {
            "auto_apply": len(self.auto_apply),
            "needs_review": len(self.needs_review),
            "unhandled": len(self.unhandled),
            "skipped": len(self.skipped),
            **dict(sorted(counts.items())),
        }
