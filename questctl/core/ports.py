"""Interfaces for the collaborators the orchestrator depends on."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from questctl.core.model import Notification


class ConfirmationPrompt(Protocol):
    async def ask(self, title: str, body: str) -> bool:
        """Return True when the user confirms."""


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None:
        """Show a workflow outcome to the user."""


class DirectoryOpener(Protocol):
    def open(self, path: Path) -> None:
        """Open a local directory in the platform file browser."""


class BridgeProvisioner(Protocol):
    async def provision(self) -> None:
        """Re-provision the tooling behind the command channel."""


class DumpCreator(Protocol):
    async def create(self) -> Path:
        """Write a diagnostic dump and return its path."""
