"""Object store REST response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from namebridge.domain.ports import StoredObject


class StoreBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class StoredObjectPayload(StoreBaseModel):
    id: str
    name: str
    created_time: datetime | None = Field(default=None, alias="createdTime")
    modified_time: datetime | None = Field(default=None, alias="modifiedTime")

    def to_stored_object(self) -> StoredObject:
        return StoredObject(
            location=self.id,
            name=self.name,
            created_at=self.created_time,
            modified_at=self.modified_time,
        )


class ObjectListPage(StoreBaseModel):
    files: list[StoredObjectPayload] = Field(default_factory=list[StoredObjectPayload])
    next_page_token: str | None = Field(default=None, alias="nextPageToken")
