"""Backend-independent vault folder model."""

from datetime import datetime, timezone

from pydantic import BaseModel, field_validator


class Folder(BaseModel):
    """
    Represents a single vault folder as returned by a vault client.

    ``children`` is the backend's stored child list and is only used for ordering;
    the tree is derived from ``parent_id`` links. ``documents`` is a membership cache
    rebuilt from ``Document.folder_id`` whenever documents are loaded.
    """
    engine: str
    id: str
    name: str
    parent_id: str | None = None
    children: list[str] = []
    documents: list[str] = []
    updated_at: datetime | None = None

    @field_validator("updated_at")
    @classmethod
    def _normalize_timezone(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class FoldersListResponse(BaseModel):
    """
    Represents the response from a vault when fetching the folder collection.
    """
    engine: str
    folders: list[Folder] = []
