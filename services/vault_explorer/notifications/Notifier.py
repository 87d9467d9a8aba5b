"""Transient user notifications (toasts) raised by explorer operations."""

from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel

from shared.helper.HelperConfig import HelperConfig


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    level: NotificationLevel
    message: str
    created_at: datetime


class NotifierInterface(ABC):
    """Channel through which the explorer reports outcomes to the user."""

    @abstractmethod
    def notify(self, level: NotificationLevel, message: str) -> None:
        pass

    def notify_success(self, message: str) -> None:
        self.notify(NotificationLevel.SUCCESS, message)

    def notify_warning(self, message: str) -> None:
        self.notify(NotificationLevel.WARNING, message)

    def notify_error(self, message: str) -> None:
        self.notify(NotificationLevel.ERROR, message)


class LoggingNotifier(NotifierInterface):
    """Logs every notification and keeps the most recent ones for the UI to poll."""

    def __init__(self, helper_config: HelperConfig, capacity: int = 50) -> None:
        self.logging = helper_config.get_logger()
        self._recent: deque[Notification] = deque(maxlen=capacity)

    def notify(self, level: NotificationLevel, message: str) -> None:
        if level == NotificationLevel.ERROR:
            self.logging.error("Notification: %s", message)
        elif level == NotificationLevel.WARNING:
            self.logging.warning("Notification: %s", message)
        else:
            self.logging.info("Notification: %s", message, color="green" if level == NotificationLevel.SUCCESS else None)
        self._recent.append(Notification(level=level, message=message, created_at=datetime.now(timezone.utc)))

    def get_recent(self) -> list[Notification]:
        return list(self._recent)

    def drain(self) -> list[Notification]:
        """Returns and forgets all pending notifications."""
        notifications = list(self._recent)
        self._recent.clear()
        return notifications
