"""User-visible notifications (the panel's toasts).

Rendering is someone else's job: the core only talks to a `Notifier`.
`LogNotifier` logs each notification and keeps a short history that a
front end or the CLI can drain.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from typing import Protocol

from light_panel.logging_abstraction import get_logger
from light_panel.structs import Notification, NotificationLevel

__all__ = ["LogNotifier", "Notifier"]

logger = get_logger(__name__)


class Notifier(Protocol):
    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogNotifier:
    lp: str = "notify:"

    def __init__(self, history: int = 50, sink: Callable[[Notification], None] | None = None) -> None:
        self.history: deque[Notification] = deque(maxlen=history)
        self.sink: Callable[[Notification], None] | None = sink

    def _emit(self, level: NotificationLevel, message: str) -> None:
        notification = Notification(level=level, message=message)
        self.history.append(notification)
        if level is NotificationLevel.ERROR:
            logger.error("%s %s", self.lp, message)
        elif level is NotificationLevel.WARNING:
            logger.warning("%s %s", self.lp, message)
        else:
            logger.info("%s [%s] %s", self.lp, level, message)
        if self.sink is not None:
            self.sink(notification)

    def info(self, message: str) -> None:
        self._emit(NotificationLevel.INFO, message)

    def success(self, message: str) -> None:
        self._emit(NotificationLevel.SUCCESS, message)

    def warning(self, message: str) -> None:
        self._emit(NotificationLevel.WARNING, message)

    def error(self, message: str) -> None:
        self._emit(NotificationLevel.ERROR, message)

    def messages(self, level: NotificationLevel | None = None) -> list[str]:
        """Messages in history order, optionally filtered by level."""
        return [n.message for n in self.history if level is None or n.level is level]

    def drain(self) -> list[Notification]:
        drained = list(self.history)
        self.history.clear()
        return drained
