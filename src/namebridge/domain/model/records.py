"""Source records as consumed by the matching engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from namebridge.domain.model.terms import create_term

if TYPE_CHECKING:
    from collections.abc import Mapping

    from namebridge.domain.model.enums import SourceId
    from namebridge.domain.model.terms import AttributedTerm


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceRecord:
    source_id: SourceId
    name: str
    source_row_index: int
    source_record_key: str | None = None
    natural_key: int | None = None
    name_fields: Mapping[str, str] = field(default_factory=dict[str, str])
    address: str | None = None
    household: bool = False

    @property
    def label(self) -> str:
        return self.source_record_key or f"{self.source_id}#{self.source_row_index}"

    def name_term(self, field_name: str = "name") -> AttributedTerm:
        return create_term(
            self.name,
            self.source_id,
            source_record_index=self.source_row_index,
            source_record_key=self.source_record_key,
            field_name=field_name,
        )
