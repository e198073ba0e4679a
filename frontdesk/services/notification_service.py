"""Operator-facing notifications emitted by the reservation workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)


class Notifier(Protocol):
    def success(self, title: str, message: str) -> None: ...

    def error(self, title: str, message: str) -> None: ...

    def warning(self, title: str, message: str) -> None: ...


class LoggingNotifier:
    """Routes notifications to the application log."""

    def success(self, title: str, message: str) -> None:
        logger.info("Notification | level=success | title=%s | message=%s", title, message)

    def error(self, title: str, message: str) -> None:
        logger.error("Notification | level=error | title=%s | message=%s", title, message)

    def warning(self, title: str, message: str) -> None:
        logger.warning("Notification | level=warning | title=%s | message=%s", title, message)


@dataclass
class RecordingNotifier:
    """Keeps notifications in memory, newest last."""

    messages: list[tuple[str, str, str]] = field(default_factory=list)

    def success(self, title: str, message: str) -> None:
        self.messages.append(("success", title, message))

    def error(self, title: str, message: str) -> None:
        self.messages.append(("error", title, message))

    def warning(self, title: str, message: str) -> None:
        self.messages.append(("warning", title, message))

    def levels(self) -> list[str]:
        return [level for level, _, _ in self.messages]
