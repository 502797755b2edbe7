"""adb command channel implementation using asyncio subprocesses."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import BinaryIO

from questctl.core import commands
from questctl.core.errors import (
    CommandFailedError,
    DeviceUnavailableError,
    ProvisioningError,
)
from questctl.core.model import CommandResult, CommandSpec

LOGGER = logging.getLogger(__name__)

_UNAVAILABLE_MARKERS = (
    "no devices/emulators found",
    "device offline",
    "device unauthorized",
    "not found",
    "more than one device/emulator",
)


async def _spawn(argv: Sequence[str], **kwargs) -> asyncio.subprocess.Process:
    LOGGER.debug("Running %s", " ".join(argv))
    try:
        return await asyncio.create_subprocess_exec(*argv, **kwargs)
    except FileNotFoundError as exc:
        raise DeviceUnavailableError(
            f"adb executable '{argv[0]}' was not found. Install platform-tools or set adb_path."
        ) from exc
    except OSError as exc:
        raise DeviceUnavailableError(f"Could not start '{argv[0]}': {exc}") from exc


def _classify_failure(result: CommandResult) -> Exception:
    # adb reports transport problems on stderr with "error:" before any device output.
    stderr = result.stderr.lower()
    if stderr.startswith("error:") or "adb: error" in stderr:
        if any(marker in stderr for marker in _UNAVAILABLE_MARKERS):
            return DeviceUnavailableError(result.stderr.strip())
    return CommandFailedError(result)


class AdbLogStream:
    """A running ``adb logcat`` process."""

    def __init__(self, process: asyncio.subprocess.Process) -> None:
        self._process = process

    @property
    def pid(self) -> int:
        return self._process.pid

    async def wait(self) -> int:
        return await self._process.wait()

    async def cancel(self) -> None:
        if self._process.returncode is None:
            try:
                self._process.terminate()
            except ProcessLookupError:
                pass
        await self._process.wait()


class AdbCommandChannel:
    def __init__(self, *, adb_path: str = "adb", serial: str | None = None) -> None:
        self.adb_path = adb_path
        self.serial = serial

    def _argv(self, command: CommandSpec) -> list[str]:
        argv = [self.adb_path]
        if self.serial:
            argv.extend(["-s", self.serial])
        argv.extend(command.argv)
        return argv

    async def run(self, command: CommandSpec, *, check: bool = True) -> CommandResult:
        process = await _spawn(
            self._argv(command),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        result = CommandResult(
            command=command,
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        if check and result.returncode != 0:
            raise _classify_failure(result)
        return result

    async def start_stream(self, output: BinaryIO) -> AdbLogStream:
        process = await _spawn(
            self._argv(commands.logcat()),
            stdout=output,
            stderr=asyncio.subprocess.STDOUT,
        )
        LOGGER.info("Started logcat (pid %s)", process.pid)
        return AdbLogStream(process)


class AdbServerProvisioner:
    """Restart the local adb server so a wedged bridge comes back clean."""

    def __init__(self, *, adb_path: str = "adb") -> None:
        self.adb_path = adb_path

    async def _host_command(self, *args: str, check: bool = True) -> None:
        try:
            process = await _spawn(
                [self.adb_path, *args],
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except DeviceUnavailableError as exc:
            raise ProvisioningError(str(exc)) from exc
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            detail = (stderr or stdout).decode("utf-8", errors="replace").strip()
            message = f"'adb {' '.join(args)}' failed with exit code {process.returncode}: {detail}"
            if check:
                raise ProvisioningError(message)
            LOGGER.warning(message)

    async def provision(self) -> None:
        LOGGER.info("Restarting adb server")
        # kill-server exits non-zero when no server was running.
        await self._host_command("kill-server", check=False)
        await self._host_command("start-server")
