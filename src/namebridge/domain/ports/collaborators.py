"""Ports for external collaborators: human disambiguation and name parsing."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from namebridge.domain.model import NameComponents
    from namebridge.domain.workflows.contracts import DisambiguationChoice, DuplicateKeyConflict


@runtime_checkable
class DisambiguationCallback(Protocol):
    """Suspend until a human picks one of the closed resolution choices.

    Returning ``None`` means no decision; the workflow must not proceed.
    """

    async def __call__(self, conflict: DuplicateKeyConflict) -> DisambiguationChoice | None: ...


@runtime_checkable
class NameParser(Protocol):
    """Black-box extraction of structured name components."""

    def __call__(self, value: str) -> NameComponents: ...
