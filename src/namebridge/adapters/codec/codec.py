"""JSON implementation of the ``ViewCodec`` port."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from namebridge.domain.model import NamebridgeError, ParseError

from .schema import IdentityPayload, IndexPayload, SnapshotPayload
from .translator import (
    identity_from_payload,
    identity_to_payload,
    index_from_payload,
    index_to_payload,
    snapshot_from_payload,
    snapshot_to_payload,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel

    from namebridge.domain.consistency import BulkSnapshot, RemoteIndex
    from namebridge.domain.model import CanonicalIdentity


class JsonViewCodec:
    """Encode views as UTF-8 JSON; decoding failures raise ``ParseError``."""

    def __init__(self, *, indent: int | None = None) -> None:
        self.indent = indent

    def encode_identity(self, identity: CanonicalIdentity) -> bytes:
        return self._dump(identity_to_payload(identity))

    def decode_identity(self, data: bytes) -> CanonicalIdentity:
        payload = _load(IdentityPayload, data, reason="invalid_identity")
        return _translate(identity_from_payload, payload, reason="invalid_identity")

    def encode_snapshot(self, snapshot: BulkSnapshot) -> bytes:
        return self._dump(snapshot_to_payload(snapshot))

    def decode_snapshot(self, data: bytes) -> BulkSnapshot:
        payload = _load(SnapshotPayload, data, reason="invalid_snapshot")
        return _translate(snapshot_from_payload, payload, reason="invalid_snapshot")

    def encode_index(self, index: RemoteIndex) -> bytes:
        return self._dump(index_to_payload(index))

    def decode_index(self, data: bytes) -> RemoteIndex:
        payload = _load(IndexPayload, data, reason="invalid_index")
        return _translate(index_from_payload, payload, reason="invalid_index")

    def _dump(self, payload: BaseModel) -> bytes:
        return payload.model_dump_json(by_alias=True, indent=self.indent).encode("utf-8")


def _load[M: BaseModel](model: type[M], data: bytes, *, reason: str) -> M:
    try:
        return model.model_validate_json(data)
    except ValidationError as exc:
        raise ParseError(
            f"Cannot decode {model.__name__}: {exc.error_count()} error(s)", reason=reason
        ) from exc


def _translate[P: BaseModel, T](convert: Callable[[P], T], payload: P, *, reason: str) -> T:
    # Well-formed payloads can still break domain rules (blank or repeated variants).
    try:
        return convert(payload)
    except (ValueError, NamebridgeError) as exc:
        raise ParseError(
            f"Cannot translate {type(payload).__name__}: {exc}", reason=reason
        ) from exc
