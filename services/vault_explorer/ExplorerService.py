"""Explorer service.

Owns the explorer state and wires it to the remote vault. Every backend mutation
is fire-and-refetch: the request is sent, and only a successful response triggers
a refetch of the affected collection. Starring is the one optimistic change; its
local override is reverted when the backend rejects it.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any

from shared.clients.VaultRequestError import VaultRequestError
from shared.clients.vault.VaultClientInterface import VaultClientInterface
from shared.helper.HelperConfig import HelperConfig
from services.vault_explorer.FolderTreeBuilder import FolderTree, TreeNode
from services.vault_explorer.InspectorCoordinator import InspectorCoordinator
from services.vault_explorer.ListPipeline import ListPipeline, ListResult, QuickAccessFilter, SortField
from services.vault_explorer.PathResolver import Breadcrumb, build_breadcrumbs
from services.vault_explorer.SecurityTier import SecurityTier
from services.vault_explorer.explorer_utils import format_file_size, format_relative_date, get_file_type
from services.vault_explorer.models.ExplorerItem import ExplorerItem, ItemType
from services.vault_explorer.models.ExplorerState import ExplorerState, ViewMode
from services.vault_explorer.models.ExplorerView import ExplorerView, ItemLabels
from services.vault_explorer.models.InspectorState import CustodyCertificate, InspectorOperation
from services.vault_explorer.notifications.Notifier import NotifierInterface


class ExplorerService:
    """Orchestrates state commands, list derivation and backend mutations of the explorer."""

    def __init__(
        self,
        helper_config: HelperConfig,
        vault_client: VaultClientInterface,
        notifier: NotifierInterface,
        state: ExplorerState | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._vault = vault_client
        self._notifier = notifier
        self._pipeline = ListPipeline(helper_config=helper_config)
        self.root_label = helper_config.get_string_val("EXPLORER_ROOT_LABEL", default="Primary Vault")
        self.state = state or ExplorerState()
        self.inspector = InspectorCoordinator(
            helper_config=helper_config,
            vault_client=vault_client,
            notifier=notifier,
            refetch=self.do_refresh_documents,
            known_documents=lambda: self.state.documents,
        )
        self._refresh_issued = 0

    ##########################################
    ############### REFRESH ##################
    ##########################################

    async def do_refresh(self, documents: bool = True, folders: bool = True) -> bool:
        """
        Refetches the document and/or folder collections.

        A collection that fails to load keeps its previous value and the failure is
        notified. When several refreshes overlap, only the latest one is applied.

        Returns:
            bool: True if every requested collection was loaded.
        """
        self._refresh_issued += 1
        token = self._refresh_issued

        calls = []
        if documents:
            calls.append(self._vault.do_fetch_documents())
        if folders:
            calls.append(self._vault.do_fetch_folders())
        results = list(await asyncio.gather(*calls, return_exceptions=True))

        fetched_documents = results.pop(0) if documents else None
        fetched_folders = results.pop(0) if folders else None

        ok = True
        for name, result in (("documents", fetched_documents), ("folders", fetched_folders)):
            if isinstance(result, VaultRequestError):
                ok = False
                self.logging.error("Refreshing %s failed: %s", name, result)
                self._notifier.notify_error(f"Could not load {name}: {result.message}" if result.server_message else f"Could not load {name}")
            elif isinstance(result, BaseException):
                raise result

        if token != self._refresh_issued:
            self.logging.debug("Discarding superseded refresh #%d", token)
            return ok

        self.state = self.state.with_collections(
            documents=fetched_documents if isinstance(fetched_documents, dict) else None,
            folders=fetched_folders if isinstance(fetched_folders, dict) else None,
        )
        self.inspector.reconcile(self.state.documents, self.state.folders)
        return ok

    async def do_refresh_documents(self) -> bool:
        return await self.do_refresh(folders=False)

    async def do_refresh_folders(self) -> bool:
        return await self.do_refresh(documents=False)

    ##########################################
    ################ VIEWS ###################
    ##########################################

    def get_listing(self, now: datetime | None = None) -> ListResult:
        return self._pipeline.do_run(
            documents=self.state.documents,
            folders=self.state.folders,
            query=self.state.to_list_query(),
            now=now or datetime.now(timezone.utc),
            star_overrides=self.state.star_overrides,
        )

    def get_breadcrumbs(self) -> list[Breadcrumb]:
        return build_breadcrumbs(self.state.current_folder_id, self.state.folders, root_label=self.root_label)

    def get_view(self, now: datetime | None = None) -> ExplorerView:
        now = now or datetime.now(timezone.utc)
        listing = self.get_listing(now)
        return ExplorerView(
            current_folder_id=self.state.current_folder_id,
            breadcrumbs=self.get_breadcrumbs(),
            items=listing.items,
            most_cited=listing.most_cited,
            labels={item.id: self._labels(item, now) for item in listing.items + listing.most_cited},
            total_count=listing.total_count,
            starred_count=listing.starred_count,
            recent_count=listing.recent_count,
            selected_id=self.state.selected_id,
            search_query=self.state.search_query,
            quick_access=self.state.quick_access,
            sort_field=self.state.sort_field,
            sort_ascending=self.state.sort_ascending,
            view_mode=self.state.view_mode,
        )

    def _labels(self, item: ExplorerItem, now: datetime) -> ItemLabels:
        return ItemLabels(
            size=format_file_size(item.size),
            updated=format_relative_date(item.updated_at, now=now),
            file_type="Folder" if item.is_folder else get_file_type(item.name),
        )

    def get_tree(self, include_documents: bool = False) -> list[TreeNode]:
        tree = FolderTree(self.state.folders)
        return tree.flatten(
            expanded=self.state.expanded_folder_ids,
            selected_folder_id=self.state.current_folder_id,
            documents=self.state.documents if include_documents else None,
        )

    def get_certificate(self, user_name: str | None = None) -> CustodyCertificate | None:
        """Custody certificate of the inspected document, None when no document is inspected."""
        document = self.state.documents.get(self.inspector.item_id) if self.inspector.item_id else None
        if document is None:
            return None
        return self.inspector.build_certificate(document, user_name=user_name)

    ##########################################
    ########### LOCAL COMMANDS ###############
    ##########################################

    def navigate(self, folder_id: str | None) -> bool:
        """
        Opens a folder, or the vault root for None. Closes the inspector and expands
        the tree down to the folder.

        Returns:
            bool: False if the folder does not exist.
        """
        if folder_id is not None and folder_id not in self.state.folders:
            self.logging.warning("Cannot navigate to unknown folder %s", folder_id)
            return False
        ancestors = FolderTree(self.state.folders).ancestors_of(folder_id)
        self.state = self.state.navigate(folder_id).expand_folders(ancestors)
        self.inspector.close()
        return True

    def select(self, item_id: str | None) -> bool:
        """
        Selects an item and opens the inspector on it; None clears the selection.

        Returns:
            bool: False if the item does not exist.
        """
        if item_id is None:
            self.state = self.state.clear_selection()
            self.inspector.close()
            return True
        if item_id in self.state.folders:
            item_type = ItemType.FOLDER
        elif item_id in self.state.documents:
            item_type = ItemType.DOCUMENT
        else:
            self.logging.warning("Cannot select unknown item %s", item_id)
            return False
        self.state = self.state.select(item_id)
        self.inspector.open(item_id, item_type)
        return True

    def close_inspector(self) -> None:
        self.state = self.state.clear_selection()
        self.inspector.close()

    def set_search(self, search_query: str) -> None:
        self.state = self.state.set_search(search_query)

    def set_quick_access(self, quick_access: QuickAccessFilter | None) -> None:
        self.state = self.state.set_quick_access(quick_access)

    def toggle_sort(self, sort_field: SortField) -> None:
        self.state = self.state.toggle_sort(sort_field)

    def set_sort(self, sort_field: SortField, sort_ascending: bool) -> None:
        self.state = self.state.set_sort(sort_field, sort_ascending)

    def set_view_mode(self, view_mode: ViewMode) -> None:
        self.state = self.state.set_view_mode(view_mode)

    def toggle_folder_expanded(self, folder_id: str) -> bool:
        if folder_id not in self.state.folders:
            return False
        self.state = self.state.toggle_folder_expanded(folder_id)
        return True

    ##########################################
    ########## REMOTE MUTATIONS ##############
    ##########################################

    async def do_create_folder(self, name: str) -> bool:
        """
        Creates a folder inside the current folder and refetches the folders.

        Returns:
            bool: True if the backend created the folder.
        """
        name = (name or "").strip()
        if not name:
            self._notifier.notify_warning("Folder name must not be empty")
            return False
        parent_id = self.state.current_folder_id
        try:
            await self._vault.do_create_folder(name, parent_id=parent_id)
        except VaultRequestError as e:
            self._notify_failure("Could not create folder", e)
            return False
        self.logging.info("Created folder %r in %s", name, parent_id or "vault root")
        await self.do_refresh_folders()
        self._notifier.notify_success(f"Folder '{name}' created")
        return True

    async def do_delete_folder(self, folder_id: str) -> bool:
        """Deletes a folder; when it was open the view falls back to the vault root on refetch."""
        try:
            await self._vault.do_delete_folder(folder_id)
        except VaultRequestError as e:
            self._notify_failure("Could not delete folder", e)
            return False
        self.logging.info("Deleted folder %s", folder_id)
        # the backend may have moved or removed the folder's documents too
        await self.do_refresh()
        self._notifier.notify_success("Folder deleted")
        return True

    async def do_move_document(self, document_id: str, folder_id: str | None) -> bool:
        if folder_id is not None and folder_id not in self.state.folders:
            self._notifier.notify_warning("Target folder does not exist")
            return False
        try:
            await self._vault.do_move_document(document_id, folder_id)
        except VaultRequestError as e:
            self._notify_failure("Could not move document", e)
            return False
        self.logging.info("Moved document %s to %s", document_id, folder_id or "vault root")
        await self.do_refresh_documents()
        self._notifier.notify_success("Document moved")
        return True

    async def do_delete_document(self, document_id: str) -> bool:
        try:
            await self._vault.do_delete_document(document_id)
        except VaultRequestError as e:
            self._notify_failure("Could not delete document", e)
            return False
        self.logging.info("Deleted document %s", document_id)
        await self.do_refresh_documents()
        self._notifier.notify_success("Document deleted")
        return True

    async def do_toggle_star(self, document_id: str) -> bool:
        """
        Flips the star of a document. The new value shows immediately and is reverted
        if the backend rejects it.

        Returns:
            bool: True if the backend accepted the change.
        """
        if document_id not in self.state.documents:
            self.logging.warning("Cannot star unknown document %s", document_id)
            return False
        starred = not self.state.is_starred(document_id)
        self.state = self.state.with_star_override(document_id, starred)
        try:
            await self._vault.do_set_star(document_id, starred)
        except VaultRequestError as e:
            self.state = self.state.without_star_override(document_id)
            self._notify_failure("Could not update star", e)
            return False
        await self.do_refresh_documents()
        return True

    async def do_inspect(self, operation: InspectorOperation, **kwargs) -> Any:
        """
        Runs an inspector operation as a tracked task and waits until it settles.

        Returns:
            Any: The operation's result, None when a reselection cancelled it.

        Raises:
            ValueError: For an unknown security tier.
        """
        task = self.inspector.start(operation, **kwargs)
        await asyncio.wait({task})
        if task.cancelled():
            self.logging.debug("Inspector %s superseded by a reselection", operation.value)
            return None
        return task.result()

    async def do_change_security(self, tier: SecurityTier | str | int) -> bool:
        return bool(await self.do_inspect(InspectorOperation.SECURITY, tier=tier))

    async def do_set_indexed(self, enabled: bool) -> bool:
        return bool(await self.do_inspect(InspectorOperation.INDEXING, enabled=enabled))

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _notify_failure(self, fallback: str, error: VaultRequestError) -> None:
        self.logging.error("%s: %s", fallback, error)
        self._notifier.notify_error(f"{fallback}: {error.message}" if error.server_message else fallback)
