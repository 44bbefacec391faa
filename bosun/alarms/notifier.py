"""System notification capability: platform-level pop-ups for alerts."""

from __future__ import annotations

import abc
from collections import deque

import structlog

logger = structlog.stdlib.get_logger()


class Notifier(abc.ABC):
    """Base class for platform notification back-ends."""

    @property
    @abc.abstractmethod
    def permitted(self) -> bool:
        """Whether the platform granted permission to show notifications."""

    @abc.abstractmethod
    async def notify(self, title: str, body: str) -> bool:
        """Show a notification. Returns True on success."""


class LogNotifier(Notifier):
    """Writes notifications to the structured log (headless installs).

    The most recent *history* notifications are kept in ``sent``.
    """

    def __init__(self, permitted: bool = True, history: int = 100) -> None:
        self._permitted = permitted
        self.sent: deque[tuple[str, str]] = deque(maxlen=history)

    @property
    def permitted(self) -> bool:
        return self._permitted

    async def notify(self, title: str, body: str) -> bool:
        if not self._permitted:
            return False
        self.sent.append((title, body))
        logger.info("system_notification", title=title, body=body)
        return True
