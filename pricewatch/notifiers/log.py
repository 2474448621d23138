"""In-process notification log."""

import logging
from collections.abc import Callable
from datetime import datetime

from pricewatch.models import Notification, NotificationType, new_id

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS = 50

Listener = Callable[[Notification], None]


class NotificationLog:
    """Capped, newest-first log of user-facing alerts.

    Listeners are called synchronously for every emitted notification; a
    failing listener is logged and does not affect the log.
    """

    def __init__(self, notifications: list[Notification] | None = None, now=datetime.now):
        self._items: list[Notification] = list(notifications or [])[:MAX_NOTIFICATIONS]
        self._listeners: list[Listener] = []
        self._now = now

    def restore(self, notifications: list[Notification]) -> None:
        """Replace the log contents with previously saved notifications."""
        self._items = list(notifications)[:MAX_NOTIFICATIONS]

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, type: NotificationType, message: str) -> Notification:
        notification = Notification(
            id=new_id(), type=NotificationType(type), message=message, timestamp=self._now()
        )
        self._items.insert(0, notification)
        del self._items[MAX_NOTIFICATIONS:]
        logger.info("[%s] %s", notification.type.value, message)

        for listener in self._listeners:
            try:
                listener(notification)
            except Exception:
                logger.exception("Notification listener failed")
        return notification

    def all(self) -> list[Notification]:
        return list(self._items)

    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.read)

    def mark_all_read(self) -> None:
        for n in self._items:
            n.read = True

    def __len__(self) -> int:
        return len(self._items)
