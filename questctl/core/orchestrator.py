"""Device workflows used by the CLI and the public client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from questctl.channels.base import CommandChannel
from questctl.core import commands
from questctl.core.config import RESTART_RELAUNCH_DELAY_S, Settings
from questctl.core.errors import (
    ChannelError,
    CommandFailedError,
    DirectoryRemovalError,
    PreconditionError,
)
from questctl.core.lock import OperationLock
from questctl.core.log_session import LogSession
from questctl.core.model import LogState, Notification, Workflow, WorkflowResult
from questctl.core.ports import (
    BridgeProvisioner,
    ConfirmationPrompt,
    DirectoryOpener,
    DumpCreator,
    NotificationSink,
)

LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

UNINSTALL_TITLE = "Are you sure?"
UNINSTALL_BODY = (
    "Uninstalling your app will exit questctl, as it requires your app to be installed. "
    "If you ever reinstall your app, you can repatch it"
)

_FAILURE_TEXT: dict[Workflow, tuple[str, str]] = {
    Workflow.UNINSTALL: (
        "Failed to uninstall app",
        "Uninstalling the app failed due to an unhandled error",
    ),
    Workflow.QUICK_FIX: (
        "Failed to clear cache",
        "Running the quick fix failed due to an unhandled error",
    ),
    Workflow.REMOVE_OLD_MOD_DIRECTORIES: (
        "Failed to remove the old mod directories",
        "Removing the old mod directories failed due to an unhandled error",
    ),
    Workflow.FIX_MOD_PERMISSIONS: (
        "Failed to fix the mod directory permissions",
        "Running the fix permissions failed due to an unhandled error",
    ),
    Workflow.TOGGLE_LOG: (
        "Failed to toggle the ADB log",
        "Toggling the ADB log failed due to an unhandled error",
    ),
    Workflow.RESTART_APP: (
        "Failed to restart app",
        "Restarting the app failed due to an unhandled error",
    ),
    Workflow.CREATE_DUMP: (
        "Failed to create dump",
        "Creating the dump failed due to an unhandled error",
    ),
}

_SUCCESS_TITLES: dict[Workflow, str] = {
    Workflow.UNINSTALL: "App uninstalled",
    Workflow.QUICK_FIX: "Quick fix complete",
    Workflow.REMOVE_OLD_MOD_DIRECTORIES: "Finished removing old mod folders",
    Workflow.FIX_MOD_PERMISSIONS: "Fixed mod permissions",
    Workflow.TOGGLE_LOG: "ADB log started",
    Workflow.RESTART_APP: "App restarted",
    Workflow.CREATE_DUMP: "Dump created",
}


class Orchestrator:
    def __init__(
        self,
        *,
        settings: Settings,
        channel: CommandChannel,
        lock: OperationLock,
        log_session: LogSession,
        sink: NotificationSink,
        prompt: ConfirmationPrompt,
        opener: DirectoryOpener,
        provisioner: BridgeProvisioner,
        dumper: DumpCreator,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.lock = lock
        self._channel = channel
        self._log = log_session
        self._sink = sink
        self._prompt = prompt
        self._opener = opener
        self._provisioner = provisioner
        self._dumper = dumper
        self._sleep = sleep
        self._log.subscribe(self._on_log_state)

    @property
    def is_streaming(self) -> bool:
        return self._log.is_streaming

    @property
    def log_label(self) -> str:
        return "Stop ADB Log" if self._log.is_streaming else "Start ADB Log"

    async def uninstall(self) -> WorkflowResult:
        try:
            confirmed = await self._prompt.ask(UNINSTALL_TITLE, UNINSTALL_BODY)
        except Exception as exc:
            return self._fail(Workflow.UNINSTALL, exc)
        if not confirmed:
            LOGGER.info("Uninstall cancelled")
            return WorkflowResult.no_op(Workflow.UNINSTALL)
        return await self._guarded(Workflow.UNINSTALL, self._uninstall)

    async def quick_fix(self) -> WorkflowResult:
        # The adb tooling is replaced during a quick fix, so nothing may use it.
        return await self._guarded(Workflow.QUICK_FIX, self._quick_fix, requires_bridge=False)

    async def remove_old_mod_directories(self) -> WorkflowResult:
        return await self._guarded(Workflow.REMOVE_OLD_MOD_DIRECTORIES, self._remove_old_mod_directories)

    async def fix_mod_permissions(self) -> WorkflowResult:
        return await self._guarded(Workflow.FIX_MOD_PERMISSIONS, self._fix_mod_permissions)

    async def restart_app(self) -> WorkflowResult:
        return await self._guarded(Workflow.RESTART_APP, self._restart_app)

    async def create_dump(self) -> WorkflowResult:
        return await self._guarded(Workflow.CREATE_DUMP, self._create_dump)

    async def toggle_log(self) -> WorkflowResult:
        """Start or stop the device log.

        Not gated by the operation lock, so a log can be captured while other
        workflows run. Overlapping toggles are not queued: a start that overlaps
        another start fails with ``AlreadyStreamingError`` and is reported as a
        failed toggle. Stopping is reported through the log state change.
        """
        try:
            if self._log.is_streaming:
                await self._log.stop()
                return WorkflowResult.success(Workflow.TOGGLE_LOG, payload=LogState.STOPPED)

            LOGGER.info("Starting ADB log")
            destination = self.settings.log_file
            await self._log.start(destination)
        except Exception as exc:
            return self._fail(Workflow.TOGGLE_LOG, exc)
        return self._succeed(
            Workflow.TOGGLE_LOG,
            payload=LogState.STREAMING,
            message=f"Writing the device log to {destination}",
        )

    async def _guarded(
        self,
        workflow: Workflow,
        steps: Callable[[], Awaitable[WorkflowResult]],
        *,
        requires_bridge: bool = True,
    ) -> WorkflowResult:
        self.lock.start_operation(requires_bridge=requires_bridge)
        try:
            LOGGER.info("Running %s", workflow.value)
            try:
                return await steps()
            except Exception as exc:
                return self._fail(workflow, exc)
        finally:
            self.lock.finish_operation()

    async def _uninstall(self) -> WorkflowResult:
        app_id = self.settings.app_id
        LOGGER.info("Uninstalling %s", app_id)
        await self._channel.run(commands.uninstall(app_id))
        return self._succeed(Workflow.UNINSTALL, message=f"{app_id} was uninstalled")

    async def _quick_fix(self) -> WorkflowResult:
        await self._provisioner.provision()
        return self._succeed(Workflow.QUICK_FIX, message="The adb server was restarted")

    async def _remove_old_mod_directories(self) -> WorkflowResult:
        paths = self.settings.mod_directories.paths
        await self._channel.run(commands.chmod(paths, "777"))

        removed: list[str] = []
        for path in paths:
            LOGGER.info("Removing %s", path)
            try:
                await self._channel.run(commands.remove_directory(path))
            except ChannelError as exc:
                raise DirectoryRemovalError(path, tuple(removed)) from exc
            removed.append(path)

        listing = "\n".join(removed)
        return self._succeed(
            Workflow.REMOVE_OLD_MOD_DIRECTORIES,
            payload=tuple(removed),
            message=f"The following mod folders were removed: \n{listing}",
        )

    async def _fix_mod_permissions(self) -> WorkflowResult:
        dirs = self.settings.mod_directories
        libs = await self._list_directory(dirs.libs)
        mods = await self._list_directory(dirs.mods)

        if not libs:
            raise PreconditionError(
                "Library files are not copied, ensure you have installed core mods successfully"
            )
        if not mods:
            raise PreconditionError(
                "Mod files are not copied, ensure you have installed core mods successfully"
            )

        await self._channel.run(commands.chmod([f"{dirs.libs}/*", f"{dirs.mods}/*"], "+r"))
        return self._succeed(
            Workflow.FIX_MOD_PERMISSIONS,
            message=f"Made {len(libs)} libraries and {len(mods)} mods readable",
        )

    async def _restart_app(self) -> WorkflowResult:
        app_id = self.settings.app_id
        LOGGER.info("Restarting %s", app_id)
        await self._channel.run(commands.force_stop(app_id))

        # Launch, wait, launch again to get past the restore app prompt.
        await self._channel.run(commands.launch_activity(app_id))
        await self._sleep(RESTART_RELAUNCH_DELAY_S)
        await self._channel.run(commands.launch_activity(app_id))
        return self._succeed(Workflow.RESTART_APP, message=f"{app_id} was restarted")

    async def _create_dump(self) -> WorkflowResult:
        dump_path = await self._dumper.create()
        self._open_best_effort(dump_path.parent)
        return self._succeed(
            Workflow.CREATE_DUMP,
            payload=dump_path,
            message=f"Dump written to {dump_path}",
        )

    async def _list_directory(self, path: str) -> list[str]:
        result = await self._channel.run(commands.list_directory(path), check=False)
        if result.returncode == 0:
            return result.lines()
        if "no such file or directory" in result.output.lower():
            return []
        raise CommandFailedError(result)

    def _open_best_effort(self, folder: Path) -> None:
        try:
            self._opener.open(folder)
        except Exception as exc:
            LOGGER.warning("Could not open %s: %s", folder, exc)

    def _on_log_state(self, state: LogState) -> None:
        if state is LogState.STOPPED:
            LOGGER.info("ADB log exited")
            self._sink.notify(
                Notification.info("ADB log stopped", f"The device log was saved to {self._log.destination}")
            )

    def _succeed(self, workflow: Workflow, *, payload: object = None, message: str) -> WorkflowResult:
        self._sink.notify(Notification.info(_SUCCESS_TITLES[workflow], message))
        return WorkflowResult.success(workflow, payload=payload, message=message)

    def _fail(self, workflow: Workflow, exc: Exception) -> WorkflowResult:
        title, body = _FAILURE_TEXT[workflow]
        if isinstance(exc, PreconditionError):
            body = str(exc)
        LOGGER.error("%s: %s", title, exc, exc_info=exc)
        self._sink.notify(Notification.failure(title, body, exc))
        return WorkflowResult.failure(workflow, exc, f"{title}: {exc}")
