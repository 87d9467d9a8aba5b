"""Immutable application state of the explorer.

All changes go through named commands that return a new state; nothing is
mutated in place.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from shared.clients.vault.models.Document import Document
from shared.clients.vault.models.Folder import Folder
from services.vault_explorer.ListPipeline import ListQuery, QuickAccessFilter, SortField


class ViewMode(str, Enum):
    LIST = "list"
    GRID = "grid"


class ExplorerState(BaseModel):
    model_config = ConfigDict(frozen=True)

    documents: dict[str, Document] = {}
    folders: dict[str, Folder] = {}

    current_folder_id: str | None = None
    selected_id: str | None = None
    search_query: str = ""
    quick_access: QuickAccessFilter | None = None
    sort_field: SortField = SortField.UPDATED_AT
    sort_ascending: bool = False
    view_mode: ViewMode = ViewMode.LIST
    expanded_folder_ids: frozenset[str] = frozenset()

    # star states toggled locally and not yet seen in a refetch
    star_overrides: dict[str, bool] = {}

    ##########################################
    ################ GETTER ##################
    ##########################################

    def to_list_query(self) -> ListQuery:
        return ListQuery(
            current_folder_id=self.current_folder_id,
            quick_access=self.quick_access,
            search_query=self.search_query,
            sort_field=self.sort_field,
            sort_ascending=self.sort_ascending,
        )

    def contains(self, item_id: str) -> bool:
        return item_id in self.documents or item_id in self.folders

    ##########################################
    ############### COMMANDS #################
    ##########################################

    def with_collections(self, documents: dict[str, Document] | None = None, folders: dict[str, Folder] | None = None) -> "ExplorerState":
        """
        Replaces the documents and/or folders with freshly fetched collections.

        Rebuilds the folder membership cache from ``Document.folder_id``, drops star
        overrides the backend now confirms, leaves a folder that no longer exists and
        clears a selection whose item disappeared.
        """
        documents = dict(documents) if documents is not None else self.documents
        folders = dict(folders) if folders is not None else self.folders

        membership: dict[str, list[str]] = {}
        for document in documents.values():
            if document.folder_id is not None:
                membership.setdefault(document.folder_id, []).append(document.id)
        folders = {
            folder_id: folder.model_copy(update={"documents": membership.get(folder_id, [])})
            for folder_id, folder in folders.items()
        }

        star_overrides = {
            document_id: starred
            for document_id, starred in self.star_overrides.items()
            if document_id in documents and documents[document_id].is_starred != starred
        }

        current_folder_id = self.current_folder_id if self.current_folder_id in folders else None
        selected_id = self.selected_id if self.selected_id in documents or self.selected_id in folders else None

        return self.model_copy(update={
            "documents": documents,
            "folders": folders,
            "star_overrides": star_overrides,
            "current_folder_id": current_folder_id,
            "selected_id": selected_id,
            "expanded_folder_ids": frozenset(folder_id for folder_id in self.expanded_folder_ids if folder_id in folders),
        })

    def navigate(self, folder_id: str | None) -> "ExplorerState":
        """Opens a folder (None for the vault root) and clears the selection."""
        return self.model_copy(update={"current_folder_id": folder_id, "selected_id": None})

    def select(self, item_id: str | None) -> "ExplorerState":
        return self.model_copy(update={"selected_id": item_id})

    def clear_selection(self) -> "ExplorerState":
        return self.select(None)

    def set_search(self, search_query: str) -> "ExplorerState":
        return self.model_copy(update={"search_query": search_query})

    def set_quick_access(self, quick_access: QuickAccessFilter | None) -> "ExplorerState":
        """Activates a quick-access filter; choosing the active filter again turns it off."""
        if quick_access is not None and quick_access == self.quick_access:
            quick_access = None
        return self.model_copy(update={"quick_access": quick_access})

    def toggle_sort(self, sort_field: SortField) -> "ExplorerState":
        """Same field flips the direction, a new field starts in its natural direction."""
        if sort_field == self.sort_field:
            return self.model_copy(update={"sort_ascending": not self.sort_ascending})
        return self.model_copy(update={"sort_field": sort_field, "sort_ascending": False})

    def set_sort(self, sort_field: SortField, sort_ascending: bool) -> "ExplorerState":
        return self.model_copy(update={"sort_field": sort_field, "sort_ascending": sort_ascending})

    def set_view_mode(self, view_mode: ViewMode) -> "ExplorerState":
        return self.model_copy(update={"view_mode": view_mode})

    def toggle_folder_expanded(self, folder_id: str) -> "ExplorerState":
        expanded = set(self.expanded_folder_ids)
        if folder_id in expanded:
            expanded.discard(folder_id)
        else:
            expanded.add(folder_id)
        return self.model_copy(update={"expanded_folder_ids": frozenset(expanded)})

    def expand_folders(self, folder_ids: list[str]) -> "ExplorerState":
        return self.model_copy(update={"expanded_folder_ids": self.expanded_folder_ids | frozenset(folder_ids)})

    def with_star_override(self, document_id: str, starred: bool) -> "ExplorerState":
        return self.model_copy(update={"star_overrides": {**self.star_overrides, document_id: starred}})

    def without_star_override(self, document_id: str) -> "ExplorerState":
        overrides = {key: value for key, value in self.star_overrides.items() if key != document_id}
        return self.model_copy(update={"star_overrides": overrides})

    def is_starred(self, document_id: str) -> bool:
        if document_id in self.star_overrides:
            return self.star_overrides[document_id]
        document = self.documents.get(document_id)
        return bool(document and document.is_starred)
