"""Recursive navigation tree over the vault's folders.

The tree is derived from ``parent_id`` links. A folder's stored ``children`` list is
only trusted for ordering: ids that do not exist, or whose folder points at another
parent, are dropped, and folders that name a parent without being listed in its
``children`` are appended in collection order.
"""

from enum import Enum
from typing import AbstractSet, Mapping

from pydantic import BaseModel

from shared.clients.vault.models.Document import Document
from shared.clients.vault.models.Folder import Folder


def effective_parent_id(parent_id: str | None, folders: Mapping[str, Folder], child_id: str | None = None) -> str | None:
    """The folder an item is shown in. A missing or self-referencing parent puts it at the vault root."""
    if parent_id is None or parent_id == child_id or parent_id not in folders:
        return None
    return parent_id


class TreeNodeKind(str, Enum):
    FOLDER = "folder"
    DOCUMENT = "document"


class TreeNode(BaseModel):
    """One visible row of the navigation tree."""
    id: str
    name: str
    kind: TreeNodeKind
    depth: int
    is_expanded: bool = False
    is_selected: bool = False
    has_children: bool = False


class FolderTree:
    """Arena of folders keyed by id plus a derived parent → children index."""

    def __init__(self, folders: Mapping[str, Folder]):
        self._folders: dict[str, Folder] = dict(folders)
        self._children: dict[str, list[str]] = self._build_children_index()

    def _build_children_index(self) -> dict[str, list[str]]:
        # folders pointing at each parent, in collection order
        pointing: dict[str, list[str]] = {}
        for folder in self._folders.values():
            if folder.parent_id is not None and folder.parent_id != folder.id:
                pointing.setdefault(folder.parent_id, []).append(folder.id)

        index: dict[str, list[str]] = {}
        for folder_id, folder in self._folders.items():
            actual = pointing.get(folder_id, [])
            ordered = [child_id for child_id in dict.fromkeys(folder.children) if child_id in actual]
            ordered += [child_id for child_id in actual if child_id not in ordered]
            index[folder_id] = ordered
        return index

    ##########################################
    ################ GETTER ##################
    ##########################################

    def root_folders(self) -> list[Folder]:
        """Folders without a parent. A folder whose parent is missing is promoted to the root."""
        return [
            folder for folder in self._folders.values()
            if effective_parent_id(folder.parent_id, self._folders, child_id=folder.id) is None
        ]

    def children_of(self, folder_id: str) -> list[Folder]:
        return [self._folders[child_id] for child_id in self._children.get(folder_id, [])]

    def has_children(self, folder_id: str) -> bool:
        return bool(self._children.get(folder_id))

    def ancestors_of(self, folder_id: str | None) -> list[str]:
        """Ids of all folders above ``folder_id``, outermost first."""
        ancestors: list[str] = []
        folder = self._folders.get(folder_id) if folder_id else None
        while folder is not None and folder.parent_id in self._folders and folder.parent_id not in ancestors and folder.parent_id != folder_id:
            ancestors.insert(0, folder.parent_id)
            folder = self._folders[folder.parent_id]
        return ancestors

    ##########################################
    ############### RENDERING ################
    ##########################################

    def flatten(
        self,
        expanded: AbstractSet[str],
        selected_folder_id: str | None = None,
        documents: Mapping[str, Document] | None = None,
    ) -> list[TreeNode]:
        """
        Lists the visible tree rows depth-first.

        The children of a folder are listed only when its id is in ``expanded``.

        Args:
            expanded (AbstractSet[str]): Ids of the expanded folders.
            selected_folder_id (str | None): The folder to mark as selected.
            documents (Mapping[str, Document] | None): When given, documents are listed below
                their folder after its sub-folders.

        Returns:
            list[TreeNode]: The visible rows in render order.
        """
        documents_by_folder: dict[str, list[Document]] = {}
        if documents is not None:
            for document in documents.values():
                if document.folder_id is not None:
                    documents_by_folder.setdefault(document.folder_id, []).append(document)

        rows: list[TreeNode] = []
        visited: set[str] = set()

        def visit(folder: Folder, depth: int) -> None:
            if folder.id in visited:
                return
            visited.add(folder.id)
            child_folders = self.children_of(folder.id)
            child_documents = documents_by_folder.get(folder.id, [])
            is_expanded = folder.id in expanded
            rows.append(TreeNode(
                id=folder.id,
                name=folder.name,
                kind=TreeNodeKind.FOLDER,
                depth=depth,
                is_expanded=is_expanded,
                is_selected=folder.id == selected_folder_id,
                has_children=bool(child_folders or child_documents),
            ))
            if not is_expanded:
                return
            for child in child_folders:
                visit(child, depth + 1)
            for document in child_documents:
                rows.append(TreeNode(id=document.id, name=document.name, kind=TreeNodeKind.DOCUMENT, depth=depth + 1))

        for root in self.root_folders():
            visit(root, 0)
        return rows
