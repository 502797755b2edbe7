"""Core data models used across the channel, orchestrator, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class LogState(str, Enum):
    STOPPED = "stopped"
    STREAMING = "streaming"


class Severity(str, Enum):
    INFO = "info"
    ERROR = "error"


class Workflow(str, Enum):
    UNINSTALL = "uninstall"
    QUICK_FIX = "quick_fix"
    REMOVE_OLD_MOD_DIRECTORIES = "remove_old_mod_directories"
    FIX_MOD_PERMISSIONS = "fix_mod_permissions"
    TOGGLE_LOG = "toggle_log"
    RESTART_APP = "restart_app"
    CREATE_DUMP = "create_dump"


@dataclass(frozen=True)
class CommandSpec:
    """One adb invocation, without the executable and device selector."""

    kind: str
    argv: tuple[str, ...]


@dataclass(frozen=True)
class CommandResult:
    command: CommandSpec
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def lines(self) -> list[str]:
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    severity: Severity = Severity.INFO
    detail: BaseException | None = None

    @classmethod
    def info(cls, title: str, body: str) -> Notification:
        return cls(title=title, body=body)

    @classmethod
    def failure(cls, title: str, body: str, detail: BaseException) -> Notification:
        return cls(title=title, body=body, severity=Severity.ERROR, detail=detail)


@dataclass(frozen=True)
class WorkflowResult:
    """Outcome of one workflow invocation.

    A result is either ``ok`` with an optional payload, or failed with the
    exception that stopped the workflow. ``skipped`` marks a successful no-op,
    for example an uninstall the user declined.
    """

    workflow: Workflow
    ok: bool
    payload: Any = None
    error: BaseException | None = None
    message: str | None = None
    skipped: bool = False

    @property
    def failed(self) -> bool:
        return not self.ok

    @classmethod
    def success(
        cls,
        workflow: Workflow,
        *,
        payload: Any = None,
        message: str | None = None,
    ) -> WorkflowResult:
        return cls(workflow=workflow, ok=True, payload=payload, message=message)

    @classmethod
    def no_op(cls, workflow: Workflow) -> WorkflowResult:
        return cls(workflow=workflow, ok=True, skipped=True)

    @classmethod
    def failure(cls, workflow: Workflow, error: BaseException, message: str) -> WorkflowResult:
        return cls(workflow=workflow, ok=False, error=error, message=message)
