"""Stable public API for building tooling on top of questctl.

This module is the supported integration surface for third-party callers
(GUI frontends, scripts). Avoid importing from internal modules unless
intentionally depending on non-stable internals.
"""

from __future__ import annotations

import asyncio

from questctl.channels.adb import AdbCommandChannel, AdbServerProvisioner
from questctl.channels.base import CommandChannel, StreamHandle
from questctl.core.config import ModDirectories, Settings, load_settings
from questctl.core.desktop import (
    LoggingNotificationSink,
    StaticConfirmationPrompt,
    SystemDirectoryOpener,
)
from questctl.core.dump import InfoDumper
from questctl.core.errors import (
    AlreadyStreamingError,
    ChannelError,
    CommandFailedError,
    ConfigError,
    DeviceUnavailableError,
    DirectoryRemovalError,
    DumpError,
    OperationInProgressError,
    PreconditionError,
    ProvisioningError,
    QuestctlError,
)
from questctl.core.lock import OperationLock
from questctl.core.log_session import LogSession
from questctl.core.model import (
    CommandResult,
    CommandSpec,
    LogState,
    Notification,
    Severity,
    Workflow,
    WorkflowResult,
)
from questctl.core.orchestrator import Orchestrator, Sleep
from questctl.core.ports import (
    BridgeProvisioner,
    ConfirmationPrompt,
    DirectoryOpener,
    DumpCreator,
    NotificationSink,
)

__all__ = [
    "QuestctlError",
    "AlreadyStreamingError",
    "ChannelError",
    "CommandFailedError",
    "ConfigError",
    "DeviceUnavailableError",
    "DirectoryRemovalError",
    "DumpError",
    "OperationInProgressError",
    "PreconditionError",
    "ProvisioningError",
    "CommandChannel",
    "StreamHandle",
    "CommandResult",
    "CommandSpec",
    "LogState",
    "Notification",
    "Severity",
    "Workflow",
    "WorkflowResult",
    "ModDirectories",
    "Settings",
    "load_settings",
    "ConfirmationPrompt",
    "NotificationSink",
    "DirectoryOpener",
    "BridgeProvisioner",
    "DumpCreator",
    "OperationLock",
    "LogSession",
    "Client",
]


class Client:
    """Public client wiring the adb channel, lock, log session, and workflows.

    Any collaborator left as ``None`` gets its default: the adb executable
    from ``settings``, a logging notification sink, and a prompt that declines
    every confirmation, so uninstalling requires an explicit ``prompt``.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        channel: CommandChannel | None = None,
        sink: NotificationSink | None = None,
        prompt: ConfirmationPrompt | None = None,
        opener: DirectoryOpener | None = None,
        provisioner: BridgeProvisioner | None = None,
        dumper: DumpCreator | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        channel = channel or AdbCommandChannel(
            adb_path=self.settings.adb_path,
            serial=self.settings.device_serial,
        )
        self.lock = OperationLock()
        self.log_session = LogSession(channel)
        self._orchestrator = Orchestrator(
            settings=self.settings,
            channel=channel,
            lock=self.lock,
            log_session=self.log_session,
            sink=sink or LoggingNotificationSink(),
            prompt=prompt or StaticConfirmationPrompt(False),
            opener=opener or SystemDirectoryOpener(),
            provisioner=provisioner or AdbServerProvisioner(adb_path=self.settings.adb_path),
            dumper=dumper or InfoDumper(channel, self.settings),
            sleep=sleep or asyncio.sleep,
        )

    @property
    def is_streaming(self) -> bool:
        return self._orchestrator.is_streaming

    @property
    def log_label(self) -> str:
        return self._orchestrator.log_label

    async def uninstall(self) -> WorkflowResult:
        return await self._orchestrator.uninstall()

    async def quick_fix(self) -> WorkflowResult:
        return await self._orchestrator.quick_fix()

    async def remove_old_mod_directories(self) -> WorkflowResult:
        return await self._orchestrator.remove_old_mod_directories()

    async def fix_mod_permissions(self) -> WorkflowResult:
        return await self._orchestrator.fix_mod_permissions()

    async def toggle_log(self) -> WorkflowResult:
        return await self._orchestrator.toggle_log()

    async def restart_app(self) -> WorkflowResult:
        return await self._orchestrator.restart_app()

    async def create_dump(self) -> WorkflowResult:
        return await self._orchestrator.create_dump()

    async def wait_log_stopped(self) -> None:
        await self.log_session.wait_stopped()
