from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from services.vault_explorer.SecurityTier import SecurityTier


class ItemType(str, Enum):
    FOLDER = "folder"
    DOCUMENT = "document"


class ExplorerItem(BaseModel):
    """
    Display-ready projection of a vault document or folder.

    Items are derived and never mutated; a changed document produces a new item
    with the same id.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: ItemType
    updated_at: datetime
    size: int = Field(default=0, ge=0)
    security: SecurityTier = SecurityTier.GENERAL
    is_indexed: bool = False
    is_starred: bool = False
    citations: int = Field(default=0, ge=0)
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)

    @property
    def is_folder(self) -> bool:
        return self.type == ItemType.FOLDER
