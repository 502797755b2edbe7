"""Builders for the adb commands the workflows issue."""

from __future__ import annotations

import shlex
from collections.abc import Sequence

from questctl.core.config import UNITY_PLAYER_ACTIVITY
from questctl.core.model import CommandSpec


def _quote_path(path: str) -> str:
    # Keep a trailing wildcard unquoted so the device shell expands it.
    if path.endswith("/*"):
        return f"{shlex.quote(path[:-2])}/*"
    return shlex.quote(path)


def shell(command: str, *, kind: str = "shell") -> CommandSpec:
    return CommandSpec(kind=kind, argv=("shell", command))


def chmod(paths: Sequence[str], mode: str) -> CommandSpec:
    targets = " ".join(_quote_path(path) for path in paths)
    return shell(f"chmod -R {mode} {targets}", kind="chmod")


def remove_directory(path: str) -> CommandSpec:
    return shell(f"rm -rf {_quote_path(path)}", kind="remove_directory")


def list_directory(path: str) -> CommandSpec:
    return shell(f"ls -1 {_quote_path(path)}", kind="list_directory")


def force_stop(app_id: str) -> CommandSpec:
    return shell(f"am force-stop {shlex.quote(app_id)}", kind="force_stop")


def launch_activity(app_id: str, activity: str = UNITY_PLAYER_ACTIVITY) -> CommandSpec:
    return shell(f"am start {shlex.quote(f'{app_id}/{activity}')}", kind="launch")


def uninstall(app_id: str) -> CommandSpec:
    return CommandSpec(kind="uninstall", argv=("uninstall", app_id))


def logcat() -> CommandSpec:
    return CommandSpec(kind="logcat", argv=("logcat",))


def get_properties() -> CommandSpec:
    return shell("getprop", kind="getprop")


def list_third_party_packages() -> CommandSpec:
    return shell("pm list packages -3", kind="list_packages")
