"""Typed results of the per-document inspector requests."""

from pydantic import BaseModel

from shared.clients.vault.models.Document import Document


class DownloadLink(BaseModel):
    """A short-lived signed URL for downloading a document."""
    document_id: str
    url: str


class AuditSummary(BaseModel):
    """Count-only summary of the audit log of a document."""
    document_id: str
    count: int


class IntegrityReport(BaseModel):
    """
    Result of a server-side checksum verification.

    ``reason`` is set when the backend could not verify (e.g. "no stored checksum").
    """
    document_id: str
    valid: bool
    reason: str | None = None
    stored_hash: str | None = None
    computed_hash: str | None = None


class RelatedDocument(BaseModel):
    """A document the backend considers similar, with its similarity in [0, 1]."""
    document: Document
    similarity: float
