from pydantic import BaseModel

from services.vault_explorer.models.InspectorState import CustodyCertificate, InspectorSnapshot
from services.vault_explorer.notifications.Notifier import Notification


class MutationResponse(BaseModel):
    success: bool


class InspectorResponse(BaseModel):
    inspector: InspectorSnapshot
    certificate: CustodyCertificate | None = None


class NotificationsResponse(BaseModel):
    notifications: list[Notification]
