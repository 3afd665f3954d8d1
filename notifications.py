"""
Transient user-facing notifications with automatic expiry.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Callable, Dict, List, Optional

from data_models import Notification, Severity

LOGGER = logging.getLogger(__name__)


class NotificationManager:
    """
    Ordered collection of notifications that expire after a fixed delay.

    Removal is scheduled on the running event loop when there is one. The
    deadline is also checked whenever the collection is read, so messages
    pushed outside a loop still expire.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timeout = timeout
        self._clock = clock
        self._items: List[Notification] = []
        self._deadlines: Dict[str, float] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}

    @property
    def timeout(self) -> float:
        return self._timeout

    def push(self, severity: Severity, text: str) -> str:
        """
        Add a notification and schedule its removal.

        Args:
            severity: Success, Error or Info.
            text: Message shown to the user.

        Returns:
            Identifier usable with ``dismiss``.
        """
        notification = Notification(id=uuid.uuid4().hex[:12], severity=Severity(severity), text=text)
        self._items.append(notification)
        self._deadlines[notification.id] = self._clock() + self._timeout

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._timers[notification.id] = loop.call_later(
                self._timeout, self._expire, notification.id
            )

        if notification.severity is Severity.ERROR:
            LOGGER.error("%s", text)
        else:
            LOGGER.info("%s", text)
        return notification.id

    def dismiss(self, notification_id: str) -> bool:
        """Remove one notification early. Returns False if it is already gone."""
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        return self._remove(notification_id)

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._deadlines.clear()
        self._items.clear()

    @property
    def active(self) -> List[Notification]:
        """Notifications still visible, in insertion order."""
        now = self._clock()
        for notification_id, deadline in list(self._deadlines.items()):
            if deadline <= now:
                self.dismiss(notification_id)
        return list(self._items)

    def get(self, notification_id: str) -> Optional[Notification]:
        for notification in self.active:
            if notification.id == notification_id:
                return notification
        return None

    def _expire(self, notification_id: str) -> None:
        self._timers.pop(notification_id, None)
        if self._remove(notification_id):
            LOGGER.debug("Notification %s expired", notification_id)

    def _remove(self, notification_id: str) -> bool:
        self._deadlines.pop(notification_id, None)
        for index, notification in enumerate(self._items):
            if notification.id == notification_id:
                del self._items[index]
                return True
        return False
