from pydantic import BaseModel

from services.vault_explorer.ListPipeline import QuickAccessFilter, SortField
from services.vault_explorer.models.ExplorerState import ViewMode


class NavigateRequest(BaseModel):
    folder_id: str | None = None


class SearchRequest(BaseModel):
    query: str = ""


class SortRequest(BaseModel):
    field: SortField
    # None toggles: same field flips the direction, a new field starts in its natural one
    ascending: bool | None = None


class QuickAccessRequest(BaseModel):
    filter: QuickAccessFilter | None = None


class ViewModeRequest(BaseModel):
    mode: ViewMode


class SelectRequest(BaseModel):
    item_id: str | None = None


class CreateFolderRequest(BaseModel):
    name: str


class MoveDocumentRequest(BaseModel):
    folder_id: str | None = None


class SecurityRequest(BaseModel):
    tier: str | int


class IndexingRequest(BaseModel):
    enabled: bool
