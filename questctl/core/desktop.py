"""Default collaborators for running outside a GUI."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

from questctl.core.model import Notification, Severity

LOGGER = logging.getLogger(__name__)


class SystemDirectoryOpener:
    def open(self, path: Path) -> None:
        if sys.platform == "win32":
            os.startfile(path)  # type: ignore[attr-defined]
            return
        opener = "open" if sys.platform == "darwin" else "xdg-open"
        subprocess.Popen(
            [opener, str(path)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )


class LoggingNotificationSink:
    def notify(self, notification: Notification) -> None:
        if notification.severity is Severity.ERROR:
            LOGGER.error(
                "%s: %s",
                notification.title,
                notification.body,
                exc_info=notification.detail,
            )
        else:
            LOGGER.info("%s: %s", notification.title, notification.body)


class StaticConfirmationPrompt:
    """Answers every confirmation with a fixed value."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer

    async def ask(self, title: str, body: str) -> bool:
        LOGGER.info("%s -> %s", title, "yes" if self.answer else "no")
        return self.answer
