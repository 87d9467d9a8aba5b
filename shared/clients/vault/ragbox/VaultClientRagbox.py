from typing import Any

from pydantic import ValidationError

from shared.clients.vault.VaultClientInterface import VaultClientInterface
from shared.clients.VaultRequestError import VaultRequestError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.clients.vault.models.Document import Document, DocumentsListResponse
from shared.clients.vault.models.Folder import Folder, FoldersListResponse
from shared.clients.vault.models.Inspector import AuditSummary, DownloadLink, IntegrityReport, RelatedDocument


class VaultClientRagbox(VaultClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        prefix = self.get_config_val("API_PREFIX", default="/api", val_type="string")
        self._prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ragbox"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="API_PREFIX", val_type="string", default="/api"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return f"{self._prefix}/health"

    def _get_endpoint_documents(self) -> str:
        return f"{self._prefix}/documents"

    def _get_endpoint_document(self, document_id: str) -> str:
        return f"{self._prefix}/documents/{document_id}"

    def _get_endpoint_folders(self) -> str:
        return f"{self._prefix}/folders"

    def _get_endpoint_folder(self, folder_id: str) -> str:
        return f"{self._prefix}/folders/{folder_id}"

    def _get_endpoint_document_tier(self, document_id: str) -> str:
        return f"{self._prefix}/documents/{document_id}/tier"

    def _get_endpoint_document_ingest(self, document_id: str) -> str:
        return f"{self._prefix}/documents/{document_id}/ingest"

    def _get_endpoint_document_chunks(self, document_id: str) -> str:
        return f"{self._prefix}/documents/{document_id}/chunks"

    def _get_endpoint_document_download(self, document_id: str) -> str:
        return f"{self._prefix}/documents/{document_id}/download"

    def _get_endpoint_document_verify(self, document_id: str) -> str:
        return f"{self._prefix}/documents/{document_id}/verify"

    def _get_endpoint_document_related(self, document_id: str) -> str:
        return f"{self._prefix}/documents/{document_id}/related"

    def _get_endpoint_document_star(self, document_id: str) -> str:
        return f"{self._prefix}/documents/{document_id}/star"

    def _get_endpoint_audit(self) -> str:
        return f"{self._prefix}/audit"

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    ############### LIST RESPONSES ###############
    def _parse_endpoint_documents(self, response: Any) -> DocumentsListResponse:
        docs = []
        for item in self._iter_records(response, "documents"):
            try:
                docs.append(self._parse_endpoint_document(item))
            except VaultRequestError as e:
                self.logging.warning("Skipping document record %s: %s", item.get("id"), e)

        overall = response.get("total") if isinstance(response, dict) else None
        return DocumentsListResponse(
            engine=self._get_engine_name(),
            documents=docs,
            overallCount=overall if isinstance(overall, int) else len(docs),
        )

    def _parse_endpoint_folders(self, response: Any) -> FoldersListResponse:
        folders: dict[str, Folder] = {}
        for item in self._iter_records(response, "folders"):
            # ragbox nests child folders as objects; register them as folders of their own
            child_ids: list[str] = []
            for child in item.get("children") or []:
                if isinstance(child, str):
                    child_ids.append(child)
                elif isinstance(child, dict) and child.get("id"):
                    child_id = str(child["id"])
                    child_ids.append(child_id)
                    if child_id not in folders:
                        stub = self._parse_folder_or_skip({**child, "children": [], "parentId": child.get("parentId") or item.get("id")})
                        if stub is not None:
                            folders[child_id] = stub
            folder = self._parse_folder_or_skip({**item, "children": child_ids})
            if folder is None:
                continue
            # a top-level record wins over a nested stub of the same folder
            folders[folder.id] = folder

        return FoldersListResponse(engine=self._get_engine_name(), folders=list(folders.values()))

    ############ GET RESPONSES ##############
    def _parse_endpoint_document(self, response: dict) -> Document:
        if not response.get("id"):
            raise VaultRequestError(message="Document record without id in backend response")
        citations = response.get("citationCount", response.get("citations"))
        try:
            return Document(
                engine=self._get_engine_name(),
                id=str(response["id"]),
                name=response.get("filename") or response.get("name") or response.get("originalName") or "",
                size=response.get("sizeBytes") or response.get("size") or 0,
                created_at=response.get("createdAt") or response.get("uploadedAt"),
                updated_at=response.get("updatedAt"),
                status=response.get("indexStatus") or response.get("status"),
                security_tier=response.get("securityTier") or 1,
                is_starred=bool(response.get("isStarred", False)),
                folder_id=response.get("folderId") or None,
                checksum=response.get("checksum"),
                mime_type=response.get("mimeType"),
                citation_count=citations if isinstance(citations, int) else None,
                relevance_score=response.get("relevanceScore"),
            )
        except ValidationError as e:
            raise VaultRequestError(message=f"Malformed document record {response['id']}: {e.error_count()} invalid field(s)") from e

    def _parse_endpoint_folder(self, response: dict) -> Folder:
        if not response.get("id"):
            raise VaultRequestError(message="Folder record without id in backend response")
        try:
            return Folder(
                engine=self._get_engine_name(),
                id=str(response["id"]),
                name=response.get("name") or "",
                parent_id=response.get("parentId") or None,
                children=[str(child) for child in response.get("children") or [] if isinstance(child, (str, int))],
                updated_at=response.get("updatedAt"),
            )
        except ValidationError as e:
            raise VaultRequestError(message=f"Malformed folder record {response['id']}: {e.error_count()} invalid field(s)") from e

    def _parse_endpoint_download(self, document_id: str, response: Any) -> DownloadLink:
        url = response.get("url") if isinstance(response, dict) else None
        if not url:
            raise VaultRequestError(message="Download URL missing in backend response")
        return DownloadLink(document_id=document_id, url=url)

    def _parse_endpoint_audit(self, document_id: str, response: Any) -> AuditSummary:
        if isinstance(response, list):
            return AuditSummary(document_id=document_id, count=len(response))
        response = response or {}
        if isinstance(response.get("total"), int):
            return AuditSummary(document_id=document_id, count=response["total"])
        entries = response.get("logs", response.get("entries")) or []
        return AuditSummary(document_id=document_id, count=len(entries))

    def _parse_endpoint_verify(self, document_id: str, response: Any) -> IntegrityReport:
        response = response or {}
        return IntegrityReport(
            document_id=document_id,
            valid=bool(response.get("valid", False)),
            reason=response.get("reason"),
            stored_hash=response.get("storedHash"),
            computed_hash=response.get("computedHash"),
        )

    def _parse_endpoint_related(self, response: Any) -> list[RelatedDocument]:
        records = response.get("related") if isinstance(response, dict) else response
        related = []
        for item in records or []:
            raw_document = item.get("document")
            if not isinstance(raw_document, dict):
                # flat shape: document fields next to the similarity
                raw_document = {**item, "id": item.get("id") or item.get("documentId")}
            if not raw_document.get("id"):
                self.logging.debug("Skipping related entry without document id: %r", item)
                continue
            try:
                document = self._parse_endpoint_document(raw_document)
            except VaultRequestError as e:
                self.logging.warning("Skipping related entry %s: %s", raw_document.get("id"), e)
                continue
            related.append(RelatedDocument(document=document, similarity=float(item.get("similarity") or 0.0)))
        return related

    ############### HELPERS ###############
    def _iter_records(self, response: Any, key: str) -> list[dict]:
        """
        Normalizes a listing body to a list of records.

        Accepts a plain list, an object holding the list under ``key`` (or ``data``),
        or a map keyed by id.
        """
        if isinstance(response, dict):
            if key in response:
                response = response[key]
            elif "data" in response:
                response = response["data"]
        if isinstance(response, dict):
            return [{"id": record_id, **record} for record_id, record in response.items() if isinstance(record, dict)]
        return [record for record in response or [] if isinstance(record, dict)]

    def _parse_folder_or_skip(self, record: dict) -> Folder | None:
        try:
            return self._parse_endpoint_folder(record)
        except VaultRequestError as e:
            self.logging.warning("Skipping folder record %s: %s", record.get("id"), e)
            return None
