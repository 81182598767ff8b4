"""Stage C: address matching placeholder.

Every record reaching this stage gets an explicit terminal outcome so nothing
is silently dropped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from namebridge.domain.matching.contracts import AddressNotImplemented

if TYPE_CHECKING:
    from collections.abc import Iterable

    from namebridge.domain.model import SourceRecord


def run_address_stage(records: Iterable[SourceRecord]) -> list[AddressNotImplemented]:
    return [AddressNotImplemented(record=record) for record in records]
