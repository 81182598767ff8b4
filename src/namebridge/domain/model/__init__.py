"""Public domain model surface."""

from __future__ import annotations

from namebridge.domain.model.aliases import PRIMARY, Aliases, AliasSlot, PromoteDestination
from namebridge.domain.model.enums import AliasCategory, DemoteTarget, IdentityKind, SourceId
from namebridge.domain.model.errors import (
    AlreadyPresentError,
    ConsistencyViolation,
    DisambiguationRequired,
    DuplicateAliasError,
    DuplicateKeyError,
    KeyCollisionError,
    NamebridgeError,
    NotFoundError,
    ParseError,
    RemoteStoreError,
)
from namebridge.domain.model.identity import (
    CanonicalIdentity,
    NameComponents,
    expects_name_components,
    infer_identity_kind,
)
from namebridge.domain.model.normalize import normalize_key
from namebridge.domain.model.records import SourceRecord
from namebridge.domain.model.terms import (
    AttributedTerm,
    SourceOccurrence,
    TermValue,
    create_term,
    manual_term,
)

__all__ = [  # noqa: RUF022
    # terms
    "AttributedTerm",
    "SourceOccurrence",
    "TermValue",
    "create_term",
    "manual_term",
    "normalize_key",
    # aliases
    "PRIMARY",
    "Aliases",
    "AliasSlot",
    "PromoteDestination",
    # identities
    "CanonicalIdentity",
    "NameComponents",
    "expects_name_components",
    "infer_identity_kind",
    "SourceRecord",
    # enums
    "AliasCategory",
    "DemoteTarget",
    "IdentityKind",
    "SourceId",
    # errors
    "AlreadyPresentError",
    "ConsistencyViolation",
    "DisambiguationRequired",
    "DuplicateAliasError",
    "DuplicateKeyError",
    "KeyCollisionError",
    "NamebridgeError",
    "NotFoundError",
    "ParseError",
    "RemoteStoreError",
]
