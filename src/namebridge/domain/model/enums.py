"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SourceId(StrEnum):
    """Data sources a term can be observed in."""

    VISION_APPRAISAL = "VISION_APPRAISAL"
    PHONEBOOK = "PHONEBOOK"
    MANUAL_EDIT = "MANUAL_EDIT"


class AliasCategory(StrEnum):
    HOMONYMS = "homonyms"
    SYNONYMS = "synonyms"
    CANDIDATES = "candidates"


class DemoteTarget(StrEnum):
    """Where a replaced primary term goes."""

    HOMONYMS = "homonyms"
    SYNONYMS = "synonyms"
    CANDIDATES = "candidates"
    DISCARD = "discard"

    @property
    def category(self) -> AliasCategory | None:
        if self is DemoteTarget.DISCARD:
            return None
        return AliasCategory(self.value)


class IdentityKind(StrEnum):
    """Closed set of real-world identity kinds."""

    PERSON = "person"
    HOUSEHOLD_AGGREGATE = "household_aggregate"
    ORGANIZATION = "organization"
