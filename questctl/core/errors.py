"""Domain-specific errors for questctl."""

from __future__ import annotations

from questctl.core.model import CommandResult


class QuestctlError(Exception):
    """Base error for questctl."""


class ConfigError(QuestctlError):
    """Raised when the config file cannot be read or fails validation."""


class ChannelError(QuestctlError):
    """Base error for device command failures."""


class DeviceUnavailableError(ChannelError):
    """Raised when adb is missing or no usable device is attached."""


class CommandFailedError(ChannelError):
    """Raised when a device command exits with a non-zero status."""

    def __init__(self, result: CommandResult) -> None:
        self.result = result
        detail = result.output.strip() or "no output"
        super().__init__(
            f"Command '{' '.join(result.command.argv)}' failed with exit code "
            f"{result.returncode}: {detail}"
        )


class DirectoryRemovalError(ChannelError):
    """Raised when one directory in an ordered removal cannot be removed."""

    def __init__(self, path: str, removed: tuple[str, ...]) -> None:
        self.path = path
        self.removed = removed
        super().__init__(f"Failed to remove {path}")


class PreconditionError(QuestctlError):
    """Raised when a workflow check fails before any device state is changed."""


class AlreadyStreamingError(QuestctlError):
    """Raised when a log stream is started while one is already running."""


class ProvisioningError(QuestctlError):
    """Raised when the adb tooling cannot be re-provisioned."""


class DumpError(QuestctlError):
    """Raised when a diagnostic dump cannot be written."""


class OperationInProgressError(RuntimeError):
    """Raised when an operation starts while another one holds the lock."""
