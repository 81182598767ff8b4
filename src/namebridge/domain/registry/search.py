"""Edit-distance search over registry aliases.

Used to suggest a new home for an alias and as the fallback of ``lookup``.
Synonyms are deliberately left out of the search space.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from rapidfuzz.distance import Levenshtein

from namebridge.domain.model import AliasCategory, normalize_key

if TYPE_CHECKING:
    from collections.abc import Mapping

    from namebridge.domain.model import CanonicalIdentity, TermValue
    from namebridge.domain.registry.registry import Registry

DEFAULT_LOOKUP_THRESHOLD: Final = 0.80
EXISTING_LOOKUP_THRESHOLD: Final = 0.99

PRIMARY_LABEL: Final = "primary"
SEARCHED_CATEGORIES: Final[tuple[AliasCategory, ...]] = (
    AliasCategory.HOMONYMS,
    AliasCategory.CANDIDATES,
)


def edit_similarity(left: TermValue, right: TermValue) -> float:
    """Normalized Levenshtein similarity in ``[0, 1]`` of the normalized values."""

    return Levenshtein.normalized_similarity(normalize_key(left), normalize_key(right))


@dataclass(frozen=True, slots=True)
class SimilarIdentity:
    key: str
    score: float
    category: str
    matched_value: str
    category_scores: Mapping[str, float]


def score_identity(value: TermValue, identity: CanonicalIdentity) -> SimilarIdentity:
    """Score each searched category independently and keep the best one."""

    scores: dict[str, float] = {}
    matches: dict[str, str] = {}

    scores[PRIMARY_LABEL] = edit_similarity(value, identity.primary.value)
    matches[PRIMARY_LABEL] = str(identity.primary.value)
    for category in SEARCHED_CATEGORIES:
        best = 0.0
        for term in identity.aliases.terms_in(category):
            score = edit_similarity(value, term.value)
            if score > best:
                best = score
                matches[category] = str(term.value)
        scores[category] = best

    best_label = PRIMARY_LABEL
    for label, score in scores.items():
        if score > scores[best_label]:
            best_label = label
    return SimilarIdentity(
        key=identity.key,
        score=scores[best_label],
        category=best_label,
        matched_value=matches.get(best_label, ""),
        category_scores=scores,
    )


def find_similar_identities(
    registry: Registry,
    value: TermValue,
    *,
    exclude_key: str | None = None,
    limit: int = 5,
) -> list[SimilarIdentity]:
    excluded = normalize_key(exclude_key) if exclude_key else None
    results = [
        score_identity(value, identity)
        for identity in registry.identities()
        if identity.key != excluded
    ]
    # stable sort: equal scores keep registry insertion order
    results.sort(key=lambda result: result.score, reverse=True)
    return results[:limit]


def lookup(
    registry: Registry,
    value: TermValue,
    *,
    threshold: float = DEFAULT_LOOKUP_THRESHOLD,
) -> str | None:
    """Resolve ``value`` to an identity key: exact variant first, then similarity."""

    owner = registry.owner_of(value)
    if owner is not None:
        return owner

    best_key: str | None = None
    best_score = 0.0
    for identity in registry.identities():
        score = score_identity(value, identity).score
        if score > best_score:
            best_key, best_score = identity.key, score
    if best_key is not None and best_score >= threshold:
        return best_key
    return None


def lookup_existing(registry: Registry, value: TermValue) -> str | None:
    return lookup(registry, value, threshold=EXISTING_LOOKUP_THRESHOLD)
