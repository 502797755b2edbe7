"""Operation lock serializing device workflows."""

from __future__ import annotations

import logging
from collections.abc import Callable

from questctl.core.errors import OperationInProgressError

LOGGER = logging.getLogger(__name__)

LockListener = Callable[[bool, bool], None]


class OperationLock:
    """Gate allowing one device workflow at a time.

    ``bridge_available`` is cleared while a workflow that replaces the adb
    tooling is running, so bridge-dependent UI can disable itself. Listeners
    are called synchronously with ``(busy, bridge_available)`` on every change.
    """

    def __init__(self) -> None:
        self._busy = False
        self._bridge_available = True
        self._listeners: list[LockListener] = []

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def bridge_available(self) -> bool:
        return self._bridge_available

    def subscribe(self, listener: LockListener) -> None:
        self._listeners.append(listener)

    def start_operation(self, *, requires_bridge: bool = True) -> None:
        if self._busy:
            raise OperationInProgressError("Cannot start an operation while another is in progress")
        self._busy = True
        if not requires_bridge:
            self._bridge_available = False
        LOGGER.debug("Operation started (bridge available: %s)", self._bridge_available)
        self._emit()

    def finish_operation(self) -> None:
        self._busy = False
        self._bridge_available = True
        LOGGER.debug("Operation finished")
        self._emit()

    def _emit(self) -> None:
        for listener in self._listeners:
            listener(self._busy, self._bridge_available)
