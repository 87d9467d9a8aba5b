from enum import Enum
from typing import Any

from pydantic import BaseModel

from services.vault_explorer.models.ExplorerItem import ItemType


class InspectorOperation(str, Enum):
    DOWNLOAD = "download"
    AUDIT = "audit"
    VERIFY = "verify"
    RELATED = "related"
    SECURITY = "security"
    INDEXING = "indexing"


class OperationStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILURE = "failure"


class OperationState(BaseModel):
    """Observable state of one inspector operation: idle → loading → success | failure."""
    status: OperationStatus = OperationStatus.IDLE
    item_id: str | None = None
    data: Any = None
    error: str | None = None


class CustodyCertificate(BaseModel):
    """Chain-of-custody summary shown for a document in the inspector."""
    document_id: str
    custodian: str
    encryption: str
    checksum: str
    intelligence: str
    security_label: str


class InspectorSnapshot(BaseModel):
    is_open: bool
    item_id: str | None = None
    item_type: ItemType | None = None
    operations: dict[InspectorOperation, OperationState] = {}
