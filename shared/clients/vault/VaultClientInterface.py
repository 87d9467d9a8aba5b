from abc import abstractmethod
from typing import Any

import httpx
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.VaultRequestError import VaultRequestError
from shared.clients.vault.models.Document import Document, DocumentsListResponse
from shared.clients.vault.models.Folder import Folder, FoldersListResponse
from shared.clients.vault.models.Inspector import AuditSummary, DownloadLink, IntegrityReport, RelatedDocument


class VaultClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "vault"
        """
        return "vault"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_documents(self) -> str:
        """
        Returns the endpoint path for the document collection (e.g. "/api/documents").
        """
        pass

    @abstractmethod
    def _get_endpoint_document(self, document_id: str) -> str:
        """
        Returns the endpoint path of a single document (e.g. "/api/documents/{id}").
        Used for moving and deleting documents.
        """
        pass

    @abstractmethod
    def _get_endpoint_folders(self) -> str:
        """
        Returns the endpoint path for the folder collection (e.g. "/api/folders").
        Used for listing and creating folders.
        """
        pass

    @abstractmethod
    def _get_endpoint_folder(self, folder_id: str) -> str:
        """
        Returns the endpoint path of a single folder (e.g. "/api/folders/{id}").
        """
        pass

    @abstractmethod
    def _get_endpoint_document_tier(self, document_id: str) -> str:
        """
        Returns the endpoint path for security tier changes (e.g. "/api/documents/{id}/tier").
        """
        pass

    @abstractmethod
    def _get_endpoint_document_ingest(self, document_id: str) -> str:
        """
        Returns the endpoint path that starts vectorization of a document (e.g. "/api/documents/{id}/ingest").
        """
        pass

    @abstractmethod
    def _get_endpoint_document_chunks(self, document_id: str) -> str:
        """
        Returns the endpoint path of the stored embeddings of a document (e.g. "/api/documents/{id}/chunks").
        """
        pass

    @abstractmethod
    def _get_endpoint_document_download(self, document_id: str) -> str:
        """
        Returns the endpoint path that resolves a signed download URL (e.g. "/api/documents/{id}/download").
        """
        pass

    @abstractmethod
    def _get_endpoint_document_verify(self, document_id: str) -> str:
        """
        Returns the endpoint path for integrity verification (e.g. "/api/documents/{id}/verify").
        """
        pass

    @abstractmethod
    def _get_endpoint_document_related(self, document_id: str) -> str:
        """
        Returns the endpoint path for the similarity lookup (e.g. "/api/documents/{id}/related").
        """
        pass

    @abstractmethod
    def _get_endpoint_document_star(self, document_id: str) -> str:
        """
        Returns the endpoint path for starring a document (e.g. "/api/documents/{id}/star").
        """
        pass

    @abstractmethod
    def _get_endpoint_audit(self) -> str:
        """
        Returns the endpoint path of the audit log (e.g. "/api/audit").
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    ############# LISTING REQUESTS ##############
    async def do_fetch_documents(self) -> dict[str, Document]:
        """
        Fetches the full document collection of the vault.

        Returns:
            dict[str, Document]: The documents keyed by id, in backend order.

        Raises:
            VaultRequestError: If the request fails or the backend reports a failure.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_documents())
        documents_list_response = self._parse_endpoint_documents(self._unwrap(resp))
        self.logging.info("Fetched %d documents from %s", len(documents_list_response.documents), self._get_engine_name())
        return {document.id: document for document in documents_list_response.documents}

    async def do_fetch_folders(self) -> dict[str, Folder]:
        """
        Fetches the full folder collection of the vault.

        Returns:
            dict[str, Folder]: The folders keyed by id, in backend order.

        Raises:
            VaultRequestError: If the request fails or the backend reports a failure.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_folders())
        folders_list_response = self._parse_endpoint_folders(self._unwrap(resp))
        self.logging.info("Fetched %d folders from %s", len(folders_list_response.folders), self._get_engine_name())
        return {folder.id: folder for folder in folders_list_response.folders}

    ############# FOLDER REQUESTS ##############
    async def do_create_folder(self, name: str, parent_id: str | None = None) -> Folder | None:
        """
        Creates a folder.

        Args:
            name (str): Display name of the new folder.
            parent_id (str | None): Parent folder, None for the vault root.

        Returns:
            Folder | None: The created folder if the backend returned it.
        """
        body: dict = {"name": name}
        if parent_id:
            body["parentId"] = parent_id
        resp = await self.do_request(method="POST", endpoint=self._get_endpoint_folders(), json=body)
        data = self._unwrap(resp)
        if isinstance(data, dict) and isinstance(data.get("folder"), dict):
            data = data["folder"]
        if isinstance(data, dict) and data.get("id"):
            return self._parse_endpoint_folder(data)
        return None

    async def do_delete_folder(self, folder_id: str) -> None:
        resp = await self.do_request(method="DELETE", endpoint=self._get_endpoint_folder(folder_id))
        self._unwrap(resp)

    ############# DOCUMENT MUTATIONS ##############
    async def do_update_tier(self, document_id: str, level: int) -> None:
        """
        Persists a new security tier level (1..4) for a document.

        Raises:
            VaultRequestError: If the backend rejects the change.
        """
        resp = await self.do_request(method="PATCH", endpoint=self._get_endpoint_document_tier(document_id), json={"tier": level})
        self._unwrap(resp)

    async def do_start_ingest(self, document_id: str) -> None:
        """Asks the backend to vectorize a document."""
        resp = await self.do_request(method="POST", endpoint=self._get_endpoint_document_ingest(document_id))
        self._unwrap(resp)

    async def do_delete_chunks(self, document_id: str) -> None:
        """Asks the backend to drop all embeddings of a document."""
        resp = await self.do_request(method="DELETE", endpoint=self._get_endpoint_document_chunks(document_id))
        self._unwrap(resp)

    async def do_move_document(self, document_id: str, folder_id: str | None) -> None:
        """Moves a document into a folder, or to the vault root when folder_id is None."""
        resp = await self.do_request(method="PATCH", endpoint=self._get_endpoint_document(document_id), json={"folderId": folder_id})
        self._unwrap(resp)

    async def do_set_star(self, document_id: str, starred: bool) -> None:
        resp = await self.do_request(method="POST", endpoint=self._get_endpoint_document_star(document_id), json={"starred": starred})
        self._unwrap(resp)

    async def do_delete_document(self, document_id: str) -> None:
        resp = await self.do_request(method="DELETE", endpoint=self._get_endpoint_document(document_id))
        self._unwrap(resp)

    ############# INSPECTOR REQUESTS ##############
    async def do_fetch_download_link(self, document_id: str) -> DownloadLink:
        """
        Resolves a short-lived download URL.

        Raises:
            VaultRequestError: If the request fails or no URL is returned.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_document_download(document_id))
        return self._parse_endpoint_download(document_id, self._unwrap(resp))

    async def do_fetch_audit_summary(self, document_id: str) -> AuditSummary:
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_audit(), params={"documentId": document_id})
        return self._parse_endpoint_audit(document_id, self._unwrap(resp))

    async def do_verify_integrity(self, document_id: str) -> IntegrityReport:
        resp = await self.do_request(method="POST", endpoint=self._get_endpoint_document_verify(document_id))
        return self._parse_endpoint_verify(document_id, self._unwrap(resp))

    async def do_fetch_related(self, document_id: str, limit: int = 5) -> list[RelatedDocument]:
        """
        Fetches the documents most similar to the given one.

        Args:
            document_id (str): The source document.
            limit (int): Maximum number of results.

        Returns:
            list[RelatedDocument]: Results ordered by similarity as returned by the backend.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_document_related(document_id), params={"limit": limit})
        return self._parse_endpoint_related(self._unwrap(resp))

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _unwrap(self, response: httpx.Response) -> Any:
        """
        Decodes a JSON response and strips the ``{success, data, error}`` envelope if present.

        Args:
            response (httpx.Response): A 2xx response.

        Returns:
            Any: The ``data`` member of an envelope, otherwise the decoded body (None for empty bodies).

        Raises:
            VaultRequestError: If the body is not JSON or the envelope reports ``success: false``.
        """
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as e:
            raise VaultRequestError(message="Invalid JSON in backend response", status_code=response.status_code, url=str(response.request.url)) from e

        if isinstance(body, dict) and "success" in body:
            if not body.get("success"):
                server_message = body.get("error") or body.get("message")
                raise VaultRequestError(
                    message=server_message or "Backend reported a failure",
                    status_code=response.status_code,
                    url=str(response.request.url),
                    server_message=bool(server_message),
                )
            if "data" in body:
                return body["data"]
        return body

    ############### LIST RESPONSES ###############
    @abstractmethod
    def _parse_endpoint_documents(self, response: Any) -> DocumentsListResponse:
        """
        Parses the (unwrapped) body of the document listing endpoint.

        Args:
            response (Any): The decoded body; a list, a map keyed by id, or an object holding either.
        Returns:
            DocumentsListResponse: The parsed documents.
        """
        pass

    @abstractmethod
    def _parse_endpoint_folders(self, response: Any) -> FoldersListResponse:
        """
        Parses the (unwrapped) body of the folder listing endpoint.

        Args:
            response (Any): The decoded body; a list, a map keyed by id, or an object holding either.
        Returns:
            FoldersListResponse: The parsed folders.
        """
        pass

    ############ GET RESPONSES ##############
    @abstractmethod
    def _parse_endpoint_document(self, response: dict) -> Document:
        """
        Parses a raw document dict from the backend API into a Document object.

        Raises:
            VaultRequestError: If the record has no id.
        """
        pass

    @abstractmethod
    def _parse_endpoint_folder(self, response: dict) -> Folder:
        """
        Parses a raw folder dict from the backend API into a Folder object.

        Raises:
            VaultRequestError: If the record has no id.
        """
        pass

    @abstractmethod
    def _parse_endpoint_download(self, document_id: str, response: Any) -> DownloadLink:
        pass

    @abstractmethod
    def _parse_endpoint_audit(self, document_id: str, response: Any) -> AuditSummary:
        pass

    @abstractmethod
    def _parse_endpoint_verify(self, document_id: str, response: Any) -> IntegrityReport:
        pass

    @abstractmethod
    def _parse_endpoint_related(self, response: Any) -> list[RelatedDocument]:
        pass
