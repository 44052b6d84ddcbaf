"""Default notification side-channels."""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

notification_logger = logging.getLogger("form_engine.notifications")


class LoggingNotifier:
    """Forward notifications to the ``form_engine.notifications`` logger."""

    def info(self, message: str) -> None:
        notification_logger.info(message)

    def success(self, message: str) -> None:
        notification_logger.info(f"[success] {message}")

    def error(self, message: str) -> None:
        notification_logger.error(message)


@dataclass
class RecordingNotifier:
    """Keep notifications in memory, in arrival order.

    Used by the CLI to print messages after a command and by tests.
    """

    messages: List[Tuple[str, str]] = field(default_factory=list)

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def of_level(self, level: str) -> List[str]:
        return [message for lvl, message in self.messages if lvl == level]
