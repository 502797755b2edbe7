"""Continuous device log capture as a two-state session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

from questctl.channels.base import CommandChannel, StreamHandle
from questctl.core.errors import AlreadyStreamingError
from questctl.core.model import LogState

LOGGER = logging.getLogger(__name__)

StateListener = Callable[[LogState], None]


class LogSession:
    """Streams device log output into a local file.

    Every way a stream can end (an explicit ``stop()``, the device going away,
    the log process exiting) goes through the same watcher, so subscribers see
    exactly one ``LogState.STOPPED`` per stream and cannot tell the causes
    apart.
    """

    def __init__(self, channel: CommandChannel) -> None:
        self._channel = channel
        self._state = LogState.STOPPED
        self._destination: Path | None = None
        self._file: BinaryIO | None = None
        self._handle: StreamHandle | None = None
        self._watcher: asyncio.Task[None] | None = None
        self._starting = False
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> LogState:
        return self._state

    @property
    def is_streaming(self) -> bool:
        return self._state is LogState.STREAMING

    @property
    def destination(self) -> Path | None:
        return self._destination

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    async def start(self, destination: Path) -> None:
        if self.is_streaming or self._starting:
            raise AlreadyStreamingError("The device log is already being streamed")

        # Claimed before the first await so an overlapping start is rejected.
        self._starting = True
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            output = destination.open("wb")
            try:
                handle = await self._channel.start_stream(output)
            except BaseException:
                output.close()
                raise
        finally:
            self._starting = False

        self._file = output
        self._handle = handle
        self._destination = destination
        self._set_state(LogState.STREAMING)
        self._watcher = asyncio.create_task(self._watch(handle))
        LOGGER.info("Streaming device log to %s", destination)

    async def stop(self) -> None:
        handle = self._handle
        if handle is None or not self.is_streaming:
            return
        await handle.cancel()
        await self.wait_stopped()

    async def wait_stopped(self) -> None:
        if self._watcher is not None:
            await asyncio.shield(self._watcher)

    async def _watch(self, handle: StreamHandle) -> None:
        try:
            code = await handle.wait()
            LOGGER.info("Device log stream exited with status %s", code)
        except Exception:
            LOGGER.exception("Device log stream ended with an error")
        finally:
            self._finish(handle)

    def _finish(self, handle: StreamHandle) -> None:
        if handle is not self._handle:
            return
        self._handle = None
        if self._file is not None:
            self._file.close()
            self._file = None
        self._set_state(LogState.STOPPED)

    def _set_state(self, state: LogState) -> None:
        self._state = state
        for listener in self._listeners:
            listener(state)
