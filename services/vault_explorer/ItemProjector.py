"""Projection of raw vault records into ExplorerItems."""

from datetime import datetime

from shared.clients.vault.models.Document import Document
from shared.clients.vault.models.Folder import Folder
from services.vault_explorer.SecurityTier import SecurityTier, tier_to_security
from services.vault_explorer.models.ExplorerItem import ExplorerItem, ItemType


def project_document(doc: Document, star_override: bool | None = None) -> ExplorerItem:
    """Map a document to its ExplorerItem.

    Engagement metrics come from the backend. They are zero for documents that are
    not indexed, whatever the backend sends.

    Args:
        doc (Document): The document as fetched from the vault.
        star_override (bool | None): Local star state not yet confirmed by the backend.

    Returns:
        ExplorerItem: The projected item.
    """
    is_indexed = doc.is_indexed
    citations = 0
    relevance = 0.0
    if is_indexed:
        citations = max(0, doc.citation_count or 0)
        relevance = min(1.0, max(0.0, doc.relevance_score or 0.0))

    return ExplorerItem(
        id=doc.id,
        name=doc.name,
        type=ItemType.DOCUMENT,
        updated_at=doc.last_modified,
        size=max(0, doc.size or 0),
        security=tier_to_security(doc.security_tier or 1),
        is_indexed=is_indexed,
        is_starred=doc.is_starred if star_override is None else star_override,
        citations=citations,
        relevance_score=relevance,
    )


def project_folder(folder: Folder, now: datetime) -> ExplorerItem:
    """Map a folder to its fixed-shape ExplorerItem.

    Folders carry no document metadata. Without a backend timestamp the folder is
    dated at the evaluation time ``now``.
    """
    return ExplorerItem(
        id=folder.id,
        name=folder.name,
        type=ItemType.FOLDER,
        updated_at=folder.updated_at or now,
        size=0,
        security=SecurityTier.GENERAL,
        is_indexed=True,
        is_starred=False,
        citations=0,
        relevance_score=0.0,
    )
