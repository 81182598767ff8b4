"""Domain error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from namebridge.domain.consistency.contracts import ReconcileReport


class NamebridgeError(RuntimeError):
    """Base class for domain errors."""


class ParseError(NamebridgeError):
    """Raised when a source record cannot be interpreted.

    Batch callers catch this per record and surface ``reason`` instead of aborting.
    """

    def __init__(self, message: str, *, reason: str, row_index: int | None = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.row_index = row_index


class NotFoundError(NamebridgeError, LookupError):
    """Raised when a key, variant or term is not present."""


class DuplicateAliasError(NamebridgeError):
    """Raised when a normalized variant would appear twice."""

    def __init__(self, value: str, *, owner_key: str | None = None) -> None:
        detail = f" (owned by {owner_key!r})" if owner_key else ""
        super().__init__(f"Alias {value!r} already present{detail}")
        self.value = value
        self.owner_key = owner_key


class DuplicateKeyError(NamebridgeError):
    """Raised when an identity with the same key already exists in the registry."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Identity key {key!r} already exists")
        self.key = key


class KeyCollisionError(NamebridgeError):
    """Raised when re-keying an identity would land on another identity's key."""

    def __init__(self, key: str, *, existing_key: str) -> None:
        super().__init__(f"Cannot re-key {existing_key!r}: {key!r} belongs to another identity")
        self.key = key
        self.existing_key = existing_key


class AlreadyPresentError(NamebridgeError):
    """Raised when a move destination already carries the variant."""

    def __init__(self, value: str, *, destination_key: str) -> None:
        super().__init__(
            f"{destination_key!r} already has alias {value!r} - likely systematic error"
        )
        self.value = value
        self.destination_key = destination_key


class RemoteStoreError(NamebridgeError):
    """Raised when the remote object store rejects or fails a call."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        location: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.location = location


class ConsistencyViolation(NamebridgeError):
    """Raised when reconciliation stops because remote data is missing."""

    def __init__(self, report: ReconcileReport) -> None:
        super().__init__(report.message or "Reconciliation stopped")
        self.report = report


class DisambiguationRequired(NamebridgeError):
    """Raised when a mandatory human decision was not (validly) provided."""
