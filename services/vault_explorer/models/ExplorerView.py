from pydantic import BaseModel

from services.vault_explorer.ListPipeline import QuickAccessFilter, SortField
from services.vault_explorer.PathResolver import Breadcrumb
from services.vault_explorer.models.ExplorerItem import ExplorerItem
from services.vault_explorer.models.ExplorerState import ViewMode


class ItemLabels(BaseModel):
    """Preformatted display texts of a list row."""
    size: str
    updated: str
    file_type: str


class ExplorerView(BaseModel):
    """Everything the main list area renders for the current state."""
    current_folder_id: str | None
    breadcrumbs: list[Breadcrumb]
    items: list[ExplorerItem]
    most_cited: list[ExplorerItem]
    # keyed by item id, covers items and most_cited
    labels: dict[str, ItemLabels]
    total_count: int
    starred_count: int
    recent_count: int
    selected_id: str | None
    search_query: str
    quick_access: QuickAccessFilter | None
    sort_field: SortField
    sort_ascending: bool
    view_mode: ViewMode
