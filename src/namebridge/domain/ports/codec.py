"""Port translating domain views to and from stored bytes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from namebridge.domain.consistency.contracts import BulkSnapshot, RemoteIndex
    from namebridge.domain.model import CanonicalIdentity


@runtime_checkable
class ViewCodec(Protocol):
    def encode_identity(self, identity: CanonicalIdentity) -> bytes: ...

    def decode_identity(self, data: bytes) -> CanonicalIdentity: ...

    def encode_snapshot(self, snapshot: BulkSnapshot) -> bytes: ...

    def decode_snapshot(self, data: bytes) -> BulkSnapshot: ...

    def encode_index(self, index: RemoteIndex) -> bytes: ...

    def decode_index(self, data: bytes) -> RemoteIndex: ...
