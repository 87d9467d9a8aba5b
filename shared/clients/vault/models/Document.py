"""Backend-independent vault document model."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, field_validator

# raw status tokens the backend uses for a fully vectorized document
INDEXED_STATUS_TOKENS = ("Indexed", "ready")


class DocumentStatus(str, Enum):
    """Normalized indexing lifecycle of a document."""

    PENDING = "pending"
    PROCESSING = "processing"
    INDEXED = "indexed"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw: str | None) -> "DocumentStatus":
        """
        Maps a free-form backend status string to a lifecycle value.

        Args:
            raw (str | None): The status as sent by the backend, e.g. "ready", "Indexed", "Pending".

        Returns:
            DocumentStatus: The normalized status, UNKNOWN for anything unrecognized.
        """
        if not raw:
            return cls.UNKNOWN
        value = raw.strip().lower()
        if value in ("indexed", "ready"):
            return cls.INDEXED
        if value in ("processing", "indexing", "vectorizing"):
            return cls.PROCESSING
        if value in ("pending", "queued", "uploaded"):
            return cls.PENDING
        if value in ("error", "failed"):
            return cls.ERROR
        return cls.UNKNOWN


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Document(BaseModel):
    """
    Represents a single vault document as returned by a vault client.

    The explorer only reads documents; the remote store owns them.
    """
    engine: str
    id: str
    name: str
    size: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    status: str | None = None
    security_tier: int = 1
    is_starred: bool = False
    folder_id: str | None = None
    checksum: str | None = None
    mime_type: str | None = None

    # engagement metrics computed by the backend, absent when it does not track them
    citation_count: int | None = None
    relevance_score: float | None = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @property
    def lifecycle(self) -> DocumentStatus:
        return DocumentStatus.from_raw(self.status)

    @property
    def is_indexed(self) -> bool:
        """True only for the exact tokens "Indexed" and "ready"."""
        return self.status in INDEXED_STATUS_TOKENS

    @property
    def last_modified(self) -> datetime:
        """updated_at, falling back to created_at and finally to the epoch."""
        return self.updated_at or self.created_at or datetime.fromtimestamp(0, tz=timezone.utc)


class DocumentsListResponse(BaseModel):
    """
    Represents the response from a vault when fetching the document collection.
    """
    engine: str
    documents: list[Document] = []
    overallCount: int | None = None
