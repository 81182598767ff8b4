"""Pydantic models describing the JSON layout of the persisted views."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from namebridge.domain.model import IdentityKind, SourceId

SNAPSHOT_FORMAT = "IdentityRegistrySnapshot"
INDEX_FORMAT = "IdentityRegistryIndex"
FORMAT_VERSION = "1.0"


class CodecBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SourceOccurrencePayload(CodecBaseModel):
    source: SourceId
    index: int
    record_key: str | None = None


class TermPayload(CodecBaseModel):
    type: Literal["AttributedTerm"] = "AttributedTerm"
    value: int | str
    field_name: str = "name"
    source_map: list[SourceOccurrencePayload] = Field(min_length=1)


class AliasesPayload(CodecBaseModel):
    primary: TermPayload
    homonyms: list[TermPayload] = Field(default_factory=list[TermPayload])
    synonyms: list[TermPayload] = Field(default_factory=list[TermPayload])
    candidates: list[TermPayload] = Field(default_factory=list[TermPayload])


class ComponentsPayload(CodecBaseModel):
    first: str | None = None
    last: str | None = None
    other: str | None = None


class IdentityPayload(CodecBaseModel):
    type: Literal["CanonicalIdentity"] = "CanonicalIdentity"
    kind: IdentityKind = IdentityKind.PERSON
    components: ComponentsPayload = Field(default_factory=ComponentsPayload)
    aliases: AliasesPayload


class SnapshotEntryPayload(CodecBaseModel):
    identity: IdentityPayload = Field(alias="object")
    created: datetime
    last_modified: datetime


class SnapshotPayload(CodecBaseModel):
    format_name: Literal["IdentityRegistrySnapshot"] = Field(
        default=SNAPSHOT_FORMAT, alias="__format"
    )
    version: str = Field(default=FORMAT_VERSION, alias="__version")
    created: datetime = Field(alias="__created")
    count: int = Field(alias="__count")
    entries: dict[str, SnapshotEntryPayload] = Field(
        default_factory=dict[str, SnapshotEntryPayload]
    )

    @model_validator(mode="after")
    def _check_count(self) -> Self:
        if self.count != len(self.entries):
            raise ValueError(f"__count is {self.count} but {len(self.entries)} entries are present")
        return self


class IndexEntryPayload(CodecBaseModel):
    location: str | None = None
    created: datetime
    last_modified: datetime


class IndexPayload(CodecBaseModel):
    format_name: Literal["IdentityRegistryIndex"] = Field(default=INDEX_FORMAT, alias="__format")
    version: str = Field(default=FORMAT_VERSION, alias="__version")
    created: datetime = Field(alias="__created")
    last_modified: datetime = Field(alias="__last_modified")
    folder: str = Field(alias="__folder")
    count: int = Field(alias="__count")
    entries: dict[str, IndexEntryPayload] = Field(default_factory=dict[str, IndexEntryPayload])
