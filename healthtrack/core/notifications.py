import logging
from dataclasses import dataclass, field
from datetime import datetime

from healthtrack.utils.timeutils import now_utc

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"


@dataclass
class Notification:
    level: str
    message: str
    created_at: datetime = field(default_factory=now_utc)


class Notifier:
    """Collects transient user-facing messages (toasts) until someone drains them."""

    def __init__(self):
        self._items: list[Notification] = []

    def success(self, message: str) -> None:
        logger.info("notify: %s", message)
        self._items.append(Notification(SUCCESS, message))

    def error(self, message: str) -> None:
        logger.warning("notify: %s", message)
        self._items.append(Notification(ERROR, message))

    def drain(self) -> list[Notification]:
        items, self._items = self._items, []
        return items
