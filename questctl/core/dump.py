"""Diagnostic dump creation."""

from __future__ import annotations

import json
import logging
import zipfile
from pathlib import Path

from questctl.channels.base import CommandChannel
from questctl.core import commands
from questctl.core.config import DUMP_FILE_NAME, Settings
from questctl.core.errors import ChannelError, DumpError
from questctl.core.model import CommandSpec

LOGGER = logging.getLogger(__name__)


class InfoDumper:
    """Bundle local logs, device details, and settings into one zip file.

    Device queries that fail are recorded in the archive rather than
    aborting it, since a dump is most useful exactly when the device is
    misbehaving.
    """

    def __init__(self, channel: CommandChannel, settings: Settings) -> None:
        self._channel = channel
        self._settings = settings

    @property
    def path(self) -> Path:
        return self._settings.data_dir / DUMP_FILE_NAME

    async def _query(self, command: CommandSpec) -> str:
        try:
            result = await self._channel.run(command)
        except ChannelError as exc:
            LOGGER.warning("Could not collect %s for dump: %s", command.kind, exc)
            return f"Failed to run {' '.join(command.argv)}: {exc}\n"
        return result.stdout

    async def create(self) -> Path:
        properties = await self._query(commands.get_properties())
        packages = await self._query(commands.list_third_party_packages())

        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                logs_dir = self._settings.log_directory
                if logs_dir.is_dir():
                    for log_file in sorted(logs_dir.iterdir()):
                        if log_file.is_file():
                            archive.write(log_file, f"logs/{log_file.name}")
                archive.writestr("device/getprop.txt", properties)
                archive.writestr("device/packages.txt", packages)
                archive.writestr("settings.json", json.dumps(self._settings.as_dict(), indent=2))
        except OSError as exc:
            raise DumpError(f"Could not write dump to {path}: {exc}") from exc

        LOGGER.info("Wrote dump to %s", path)
        return path
