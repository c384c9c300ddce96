"""Pydantic models for Outline API list responses."""

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Decoded value for absent or null timestamps (e.g. documents never archived)
EPOCH_ZERO = datetime(1970, 1, 1, tzinfo=timezone.utc)


class OutlineModel(BaseModel):
    """Base for Outline entities: camelCase aliases, unknown fields ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info) -> Any:
        field = cls.model_fields[info.field_name]
        if value is not None or field.is_required():
            return value
        if field.annotation is datetime:
            return EPOCH_ZERO
        return field.get_default(call_default_factory=True)

    @field_validator("*", mode="after")
    @classmethod
    def _assume_utc(cls, value: Any) -> Any:
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Collection(OutlineModel):
    """Collection as returned by collections.list."""

    id: str
    name: str = ""
    description: str = ""
    created_at: datetime = Field(default=EPOCH_ZERO, alias="createdAt")
    updated_at: datetime = Field(default=EPOCH_ZERO, alias="updatedAt")


class Document(OutlineModel):
    """Document as returned by documents.list."""

    id: str
    title: str = ""
    text: str = ""
    created_at: datetime = Field(default=EPOCH_ZERO, alias="createdAt")
    updated_at: datetime = Field(default=EPOCH_ZERO, alias="updatedAt")
    published_at: datetime = Field(default=EPOCH_ZERO, alias="publishedAt")
    archived_at: datetime = Field(default=EPOCH_ZERO, alias="archivedAt")
    deleted_at: datetime = Field(default=EPOCH_ZERO, alias="deletedAt")
    views: int = 0
    revision: int = 0
    collection_id: str = Field(default="", alias="collectionId")

    @property
    def dedup_key(self) -> tuple[str, str]:
        """Identity of a document within one scrape."""
        return (self.id, self.collection_id)

    @property
    def size_bytes(self) -> int:
        """UTF-8 byte length of the document text."""
        return len(self.text.encode("utf-8"))


class User(OutlineModel):
    """User as returned by users.list."""

    id: str
    name: str = ""
    created_at: datetime = Field(default=EPOCH_ZERO, alias="createdAt")
    last_active_at: datetime = Field(default=EPOCH_ZERO, alias="lastActiveAt")


class Pagination(OutlineModel):
    """Pagination block of a list response."""

    limit: int = 0
    offset: int = 0
    next_path: str = Field(default="", alias="nextPath")


T = TypeVar("T", bound=OutlineModel)


class Page(BaseModel, Generic[T]):
    """One page of a list endpoint."""

    model_config = ConfigDict(extra="ignore")

    data: list[T] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)

    @field_validator("data", "pagination", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any, info) -> Any:
        if value is None:
            return [] if info.field_name == "data" else {}
        return value


CollectionsPage = Page[Collection]
DocumentsPage = Page[Document]
UsersPage = Page[User]
