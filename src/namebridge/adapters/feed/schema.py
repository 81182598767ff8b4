"""Pydantic model for one line of a source-record feed."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from namebridge.domain.model import SourceId


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class FeedBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SourceRecordPayload(FeedBaseModel):
    source: SourceId
    row: int | None = None
    record_key: str | None = None
    name: str = Field(min_length=1)
    first: str | None = None
    last: str | None = None
    other: str | None = None
    fire_number: int | str | None = None
    address: str | None = None
    household: bool = False

    @field_validator(
        "record_key", "first", "last", "other", "address", "fire_number", mode="before"
    )
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        return _blank_to_none(value)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value
