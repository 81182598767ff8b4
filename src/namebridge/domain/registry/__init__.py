"""Canonical identity registry and its derived lookups."""

from __future__ import annotations

from .context import RegistryContext
from .registry import Registry, RegistryEntry, RegistryStats
from .search import (
    SimilarIdentity,
    edit_similarity,
    find_similar_identities,
    lookup,
    lookup_existing,
    score_identity,
)
from .variant_cache import VariantCache, find_variant_conflicts

__all__ = [
    "Registry",
    "RegistryContext",
    "RegistryEntry",
    "RegistryStats",
    "SimilarIdentity",
    "VariantCache",
    "edit_similarity",
    "find_similar_identities",
    "find_variant_conflicts",
    "lookup",
    "lookup_existing",
    "score_identity",
]
