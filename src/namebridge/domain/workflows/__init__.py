"""Alias mutation workflows run against a :class:`RegistryContext`."""

from __future__ import annotations

from .change_primary import change_primary_alias
from .contracts import (
    NEW_IDENTITY,
    Abandon,
    AddIdentityResult,
    AddOutcome,
    DisambiguationChoice,
    DuplicateKeyConflict,
    IngestReport,
    MoveAliasResult,
    NewIdentity,
    PromoteVariant,
    UseManualPrimary,
)
from .duplicate_key import add_identity, resolve_duplicate_key
from .ingest import identity_from_record, ingest_records
from .move_alias import move_alias

__all__ = [
    "NEW_IDENTITY",
    "Abandon",
    "AddIdentityResult",
    "AddOutcome",
    "DisambiguationChoice",
    "DuplicateKeyConflict",
    "IngestReport",
    "MoveAliasResult",
    "NewIdentity",
    "PromoteVariant",
    "UseManualPrimary",
    "add_identity",
    "change_primary_alias",
    "identity_from_record",
    "ingest_records",
    "move_alias",
    "resolve_duplicate_key",
]
