"""Command channel interfaces."""

from __future__ import annotations

from typing import BinaryIO, Protocol

from questctl.core.model import CommandResult, CommandSpec


class StreamHandle(Protocol):
    async def wait(self) -> int:
        """Wait for the stream to end and return its exit status."""

    async def cancel(self) -> None:
        """Stop the stream and wait until it has ended."""


class CommandChannel(Protocol):
    async def run(self, command: CommandSpec, *, check: bool = True) -> CommandResult:
        """Run a one-shot command against the device."""

    async def start_stream(self, output: BinaryIO) -> StreamHandle:
        """Start the device log stream, writing raw output into ``output``."""
