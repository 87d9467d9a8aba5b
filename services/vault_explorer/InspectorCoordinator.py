"""Per-item side operations of the inspector panel.

The inspector is either closed or open on exactly one item. Every operation it runs
moves through ``idle → loading → success | failure``. A response is committed only
while it is still for the open item and is the latest request of its operation;
anything else is stale and dropped without a notification. Reselecting an item
resets every operation and cancels the lookups still running for the previous one.
Mutations of the previous item keep running: their state is no longer shown, but
they still refetch and report their outcome.
"""

import asyncio
from typing import Any, Awaitable, Callable, Mapping

from shared.clients.VaultRequestError import VaultRequestError
from shared.clients.vault.VaultClientInterface import VaultClientInterface
from shared.clients.vault.models.Document import Document, DocumentStatus
from shared.clients.vault.models.Inspector import AuditSummary, DownloadLink, IntegrityReport, RelatedDocument
from shared.helper.HelperConfig import HelperConfig
from services.vault_explorer.SecurityTier import SecurityTier, parse_security, tier_to_security
from services.vault_explorer.models.ExplorerItem import ItemType
from services.vault_explorer.models.InspectorState import (
    CustodyCertificate,
    InspectorOperation,
    InspectorSnapshot,
    OperationState,
    OperationStatus,
)
from services.vault_explorer.notifications.Notifier import NotifierInterface

RELATED_LIMIT = 5

# read-only lookups; a reselection cancels them, mutations always run to completion
QUERY_OPERATIONS = frozenset({
    InspectorOperation.DOWNLOAD,
    InspectorOperation.AUDIT,
    InspectorOperation.VERIFY,
    InspectorOperation.RELATED,
})

FALLBACK_MESSAGES: dict[InspectorOperation, str] = {
    InspectorOperation.DOWNLOAD: "Download failed",
    InspectorOperation.AUDIT: "Could not load the audit log",
    InspectorOperation.VERIFY: "Integrity verification failed",
    InspectorOperation.RELATED: "Could not load related documents",
    InspectorOperation.SECURITY: "Security tier change failed",
    InspectorOperation.INDEXING: "Indexing change failed",
}

INTELLIGENCE_STATUS: dict[DocumentStatus, str] = {
    DocumentStatus.INDEXED: "Vectorized (v3)",
    DocumentStatus.PROCESSING: "Processing...",
    DocumentStatus.PENDING: "Awaiting Vector",
    DocumentStatus.ERROR: "Vector Failed",
    DocumentStatus.UNKNOWN: "Unknown",
}


class InspectorCoordinator:
    """Runs and reconciles the async operations of the inspector panel."""

    def __init__(
        self,
        helper_config: HelperConfig,
        vault_client: VaultClientInterface,
        notifier: NotifierInterface,
        refetch: Callable[[], Awaitable[Any]] | None = None,
        known_documents: Callable[[], Mapping[str, Document]] | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._vault = vault_client
        self._notifier = notifier
        self._refetch = refetch
        self._known_documents = known_documents
        self.related_limit = helper_config.get_int_val("EXPLORER_RELATED_LIMIT", default=RELATED_LIMIT, minimum=1)
        self.default_user_name = helper_config.get_string_val("EXPLORER_DEFAULT_USER_NAME", default="Sovereign User")

        self._item_id: str | None = None
        self._item_type: ItemType | None = None
        self._states: dict[InspectorOperation, OperationState] = {op: OperationState() for op in InspectorOperation}
        self._issued: dict[InspectorOperation, int] = {op: 0 for op in InspectorOperation}
        self._tasks: dict[InspectorOperation, asyncio.Task] = {}

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def is_open(self) -> bool:
        return self._item_id is not None

    @property
    def item_id(self) -> str | None:
        return self._item_id

    def get_state(self, operation: InspectorOperation) -> OperationState:
        return self._states[operation]

    def get_snapshot(self) -> InspectorSnapshot:
        return InspectorSnapshot(
            is_open=self.is_open,
            item_id=self._item_id,
            item_type=self._item_type,
            operations=dict(self._states),
        )

    ##########################################
    ############# PANEL STATE ################
    ##########################################

    def open(self, item_id: str, item_type: ItemType = ItemType.DOCUMENT) -> None:
        """Opens the panel on an item. Opening another item resets all operations."""
        if item_id == self._item_id and item_type == self._item_type:
            return
        self._reset()
        self._item_id = item_id
        self._item_type = item_type
        self.logging.debug("Inspector opened on %s %s", item_type.value, item_id)

    def close(self) -> None:
        if self._item_id is None:
            return
        self.logging.debug("Inspector closed on %s", self._item_id)
        self._reset()
        self._item_id = None
        self._item_type = None

    def reconcile(self, document_ids: set[str] | Mapping[str, Any], folder_ids: set[str] | Mapping[str, Any]) -> None:
        """Closes the panel when its item is no longer part of the backing collections."""
        if self._item_id is None:
            return
        if self._item_id not in document_ids and self._item_id not in folder_ids:
            self.logging.info("Inspected item %s disappeared from the vault, closing inspector", self._item_id)
            self.close()

    def _reset(self) -> None:
        for operation in QUERY_OPERATIONS:
            task = self._tasks.pop(operation, None)
            if task is not None and not task.done():
                task.cancel()
        self._states = {op: OperationState() for op in InspectorOperation}
        # responses still in flight now carry an outdated issue number
        for op in self._issued:
            self._issued[op] += 1

    ##########################################
    ############### OPERATIONS ###############
    ##########################################

    async def do_download(self) -> DownloadLink | None:
        """Resolves a short-lived download URL for the inspected document."""
        return await self._run_query(InspectorOperation.DOWNLOAD, self._vault.do_fetch_download_link)

    async def do_fetch_audit(self) -> AuditSummary | None:
        return await self._run_query(InspectorOperation.AUDIT, self._vault.do_fetch_audit_summary)

    async def do_verify(self) -> IntegrityReport | None:
        return await self._run_query(InspectorOperation.VERIFY, self._vault.do_verify_integrity)

    async def do_fetch_related(self, limit: int | None = None) -> list[RelatedDocument] | None:
        """
        Looks up the documents most similar to the inspected one.

        Entries for the document itself and for documents that are no longer in the
        vault are left out.
        """
        limit = limit or self.related_limit

        async def call(document_id: str) -> list[RelatedDocument]:
            related = await self._vault.do_fetch_related(document_id, limit=limit)
            known = self._known_documents() if self._known_documents is not None else None
            return [
                entry for entry in related
                if entry.document.id != document_id and (known is None or entry.document.id in known)
            ]

        return await self._run_query(InspectorOperation.RELATED, call)

    async def do_change_security(self, tier: SecurityTier | str | int) -> bool:
        """
        Persists a new security tier for the inspected document and refetches.

        Any tier may move to any other tier.

        Returns:
            bool: True when the backend accepted the change.
        """
        tier = parse_security(tier)

        async def call(document_id: str) -> SecurityTier:
            await self._vault.do_update_tier(document_id, tier.level)
            return tier

        return await self._run_mutation(InspectorOperation.SECURITY, call, f"Security tier set to {tier.label}")

    async def do_set_indexed(self, enabled: bool) -> bool:
        """
        Includes the inspected document in retrieval (ingest) or removes its embeddings.

        Returns:
            bool: True when the backend accepted the request.
        """
        async def call(document_id: str) -> bool:
            if enabled:
                await self._vault.do_start_ingest(document_id)
            else:
                await self._vault.do_delete_chunks(document_id)
            return enabled

        message = "Indexing started" if enabled else "Document removed from the index"
        return await self._run_mutation(InspectorOperation.INDEXING, call, message)

    def start(self, operation: InspectorOperation, **kwargs) -> asyncio.Task:
        """
        Schedules an operation as a task bound to the current item.

        A running lookup of the same kind is cancelled, as are all lookups when another
        item is selected. Mutation tasks are never cancelled: their request may already
        have reached the backend, so they still refetch and notify.
        """
        runners = {
            InspectorOperation.DOWNLOAD: self.do_download,
            InspectorOperation.AUDIT: self.do_fetch_audit,
            InspectorOperation.VERIFY: self.do_verify,
            InspectorOperation.RELATED: self.do_fetch_related,
            InspectorOperation.SECURITY: self.do_change_security,
            InspectorOperation.INDEXING: self.do_set_indexed,
        }
        previous = self._tasks.get(operation)
        if operation in QUERY_OPERATIONS and previous is not None and not previous.done():
            previous.cancel()
        task = asyncio.create_task(runners[operation](**kwargs))
        self._tasks[operation] = task
        return task

    ##########################################
    ############## CERTIFICATE ###############
    ##########################################

    def build_certificate(self, document: Document, user_name: str | None = None) -> CustodyCertificate:
        """Chain-of-custody summary of a document for the given custodian."""
        checksum = document.checksum
        return CustodyCertificate(
            document_id=document.id,
            custodian=f"{user_name or self.default_user_name} (Verified)",
            encryption="AES-256-GCM",
            checksum=f"{checksum[:8]}...{checksum[-6:]}" if checksum else "Pending verification",
            intelligence=INTELLIGENCE_STATUS[document.lifecycle],
            security_label=tier_to_security(document.security_tier).label,
        )

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _begin(self, operation: InspectorOperation) -> tuple[str, int] | None:
        """Moves an operation to loading, or to failure for items it does not apply to."""
        item_id = self._item_id
        if item_id is None:
            self.logging.warning("Inspector operation %s requested while the inspector is closed", operation.value)
            return None
        if self._item_type == ItemType.FOLDER:
            self._states[operation] = OperationState(
                status=OperationStatus.FAILURE,
                item_id=item_id,
                error=f"{operation.value} is not available for folders",
            )
            return None
        self._issued[operation] += 1
        self._states[operation] = OperationState(status=OperationStatus.LOADING, item_id=item_id)
        return item_id, self._issued[operation]

    def _is_current(self, operation: InspectorOperation, item_id: str, token: int) -> bool:
        return self._item_id == item_id and self._issued[operation] == token

    def _commit(self, operation: InspectorOperation, item_id: str, token: int, data: Any = None, error: str | None = None) -> bool:
        if not self._is_current(operation, item_id, token):
            self.logging.debug("Discarding stale %s response for %s", operation.value, item_id)
            return False
        if error is not None:
            self._states[operation] = OperationState(status=OperationStatus.FAILURE, item_id=item_id, error=error)
        else:
            self._states[operation] = OperationState(status=OperationStatus.SUCCESS, item_id=item_id, data=data)
        return True

    def _failure_message(self, operation: InspectorOperation, error: VaultRequestError) -> str:
        if error.server_message:
            return f"{FALLBACK_MESSAGES[operation]}: {error.message}"
        return FALLBACK_MESSAGES[operation]

    async def _run_query(self, operation: InspectorOperation, call: Callable[[str], Awaitable[Any]]) -> Any:
        started = self._begin(operation)
        if started is None:
            return None
        item_id, token = started
        try:
            result = await call(item_id)
        except VaultRequestError as e:
            message = self._failure_message(operation, e)
            if self._commit(operation, item_id, token, error=message):
                self._notifier.notify_error(message)
            return None
        if not self._commit(operation, item_id, token, data=result):
            return None
        return result

    async def _run_mutation(self, operation: InspectorOperation, call: Callable[[str], Awaitable[Any]], success_message: str) -> bool:
        started = self._begin(operation)
        if started is None:
            return False
        item_id, token = started
        try:
            result = await call(item_id)
        except VaultRequestError as e:
            message = self._failure_message(operation, e)
            self._commit(operation, item_id, token, error=message)
            # the user asked for this change, so a failure is reported even after reselection
            self._notifier.notify_error(message)
            return False
        self._commit(operation, item_id, token, data=result)
        self.logging.info("%s applied to %s", operation.value, item_id)
        if self._refetch is not None:
            await self._refetch()
        self._notifier.notify_success(success_message)
        return True
