from __future__ import annotations

import asyncio
import io

import pytest

from questctl.channels.adb import AdbCommandChannel, AdbServerProvisioner
from questctl.core import commands
from questctl.core.errors import CommandFailedError, DeviceUnavailableError, ProvisioningError


class FakeProcess:
    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> None:
        self.pid = 4242
        self.returncode: int | None = None
        self._exit_code = returncode
        self._stdout = stdout
        self._stderr = stderr
        self.terminated = False

    async def communicate(self) -> tuple[bytes, bytes]:
        self.returncode = self._exit_code
        return self._stdout, self._stderr

    def terminate(self) -> None:
        self.terminated = True
        self.returncode = -15

    async def wait(self) -> int:
        return self.returncode if self.returncode is not None else self._exit_code


def _patch_exec(monkeypatch: pytest.MonkeyPatch, *processes: FakeProcess) -> list[tuple[tuple[str, ...], dict]]:
    calls: list[tuple[tuple[str, ...], dict]] = []
    queue = list(processes)

    async def fake_exec(*argv, **kwargs):
        calls.append((argv, kwargs))
        return queue.pop(0)

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    return calls


def test_run_selects_device_and_decodes_output(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_exec(monkeypatch, FakeProcess(stdout=b"libsongloader.so\n"))
    channel = AdbCommandChannel(adb_path="/opt/platform-tools/adb", serial="1WMHH000000000")

    result = asyncio.run(channel.run(commands.list_directory("/sdcard/mods")))

    assert calls[0][0] == (
        "/opt/platform-tools/adb",
        "-s",
        "1WMHH000000000",
        "shell",
        "ls -1 /sdcard/mods",
    )
    assert result.returncode == 0
    assert result.lines() == ["libsongloader.so"]


def test_non_zero_exit_raises_command_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_exec(monkeypatch, FakeProcess(returncode=1, stderr=b"rm: /sdcard/mods: Permission denied\n"))
    channel = AdbCommandChannel()

    with pytest.raises(CommandFailedError) as exc:
        asyncio.run(channel.run(commands.remove_directory("/sdcard/mods")))

    assert exc.value.result.returncode == 1
    assert "Permission denied" in str(exc.value)


def test_check_false_returns_failed_result(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_exec(monkeypatch, FakeProcess(returncode=1, stderr=b"ls: /sdcard/libs: No such file or directory\n"))
    channel = AdbCommandChannel()

    result = asyncio.run(channel.run(commands.list_directory("/sdcard/libs"), check=False))

    assert result.returncode == 1
    assert "No such file" in result.output


def test_missing_device_raises_device_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_exec(monkeypatch, FakeProcess(returncode=1, stderr=b"adb: error: no devices/emulators found\n"))
    channel = AdbCommandChannel()

    with pytest.raises(DeviceUnavailableError):
        asyncio.run(channel.run(commands.force_stop("com.beatgames.beatsaber")))


def test_missing_adb_binary_raises_device_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_exec(*argv, **kwargs):
        raise FileNotFoundError(argv[0])

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    channel = AdbCommandChannel(adb_path="missing-adb")

    with pytest.raises(DeviceUnavailableError) as exc:
        asyncio.run(channel.run(commands.shell("true")))

    assert "missing-adb" in str(exc.value)


def test_log_stream_writes_into_output_and_terminates(monkeypatch: pytest.MonkeyPatch) -> None:
    process = FakeProcess()
    calls = _patch_exec(monkeypatch, process)
    channel = AdbCommandChannel(serial="1WMHH000000000")
    output = io.BytesIO()

    async def scenario() -> None:
        stream = await channel.start_stream(output)
        await stream.cancel()

    asyncio.run(scenario())

    argv, kwargs = calls[0]
    assert argv == ("adb", "-s", "1WMHH000000000", "logcat")
    assert kwargs["stdout"] is output
    assert kwargs["stderr"] == asyncio.subprocess.STDOUT
    assert process.terminated is True


def test_provisioner_restarts_server(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_exec(
        monkeypatch,
        FakeProcess(returncode=1, stderr=b"cannot connect to daemon"),
        FakeProcess(stdout=b"* daemon started successfully\n"),
    )

    asyncio.run(AdbServerProvisioner().provision())

    assert [argv for argv, _ in calls] == [("adb", "kill-server"), ("adb", "start-server")]


def test_provisioner_start_failure_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_exec(
        monkeypatch,
        FakeProcess(),
        FakeProcess(returncode=1, stderr=b"could not install *smartsocket* listener"),
    )

    with pytest.raises(ProvisioningError) as exc:
        asyncio.run(AdbServerProvisioner().provision())

    assert "start-server" in str(exc.value)
