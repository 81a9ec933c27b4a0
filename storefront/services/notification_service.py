# storefront/services/notification_service.py
from dataclasses import dataclass
from typing import Callable, List, Literal

from storefront.utils.logging import get_logger

logger = get_logger(__name__)

Level = Literal["success", "error", "info"]


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str


class NotificationService:
    """
    Powiadomienia dla uzytkownika (toasty).
    Warstwa UI subskrybuje i sama decyduje jak je pokazac.
    """

    def __init__(self):
        self.history: List[Notification] = []
        self._listeners: List[Callable[[Notification], None]] = []

    def subscribe(self, listener: Callable[[Notification], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, level: Level, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self.history.append(notification)
        logger.info(f"[NOTIFICATION] {level}: {message}")

        for listener in list(self._listeners):
            listener(notification)

        return notification

    def success(self, message: str) -> Notification:
        return self.notify("success", message)

    def error(self, message: str) -> Notification:
        return self.notify("error", message)

    def info(self, message: str) -> Notification:
        return self.notify("info", message)
