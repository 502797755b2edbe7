"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

import typer

from questctl.api import Client
from questctl.core.config import load_settings
from questctl.core.errors import QuestctlError
from questctl.core.model import Notification, Severity, WorkflowResult

app = typer.Typer(help="Manage a mod loader install on a connected headset over adb")

Action = Callable[[Client], Awaitable[WorkflowResult]]


class EchoNotificationSink:
    def notify(self, notification: Notification) -> None:
        if notification.severity is Severity.ERROR:
            typer.echo(f"Error: {notification.title}: {notification.body}", err=True)
            if notification.detail is not None and str(notification.detail) != notification.body:
                typer.echo(f"  {notification.detail}", err=True)
            return
        typer.echo(f"{notification.title}: {notification.body}")


class TyperConfirmationPrompt:
    def __init__(self, assume_yes: bool = False) -> None:
        self.assume_yes = assume_yes

    async def ask(self, title: str, body: str) -> bool:
        if self.assume_yes:
            return True
        return typer.confirm(f"{title} {body}.", default=False)


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", help="Path to a config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"config": config}


def _build_client(ctx: typer.Context, *, assume_yes: bool = False) -> Client:
    settings = load_settings((ctx.obj or {}).get("config"))
    return Client(
        settings=settings,
        sink=EchoNotificationSink(),
        prompt=TyperConfirmationPrompt(assume_yes),
    )


def _run(ctx: typer.Context, action: Action, *, assume_yes: bool = False) -> None:
    try:
        client = _build_client(ctx, assume_yes=assume_yes)
        result = asyncio.run(action(client))
    except QuestctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    if result.failed:
        raise typer.Exit(code=1)
    if result.skipped:
        typer.echo("Nothing to do")


@app.command("uninstall")
def uninstall(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Uninstall the app from the headset."""
    _run(ctx, lambda client: client.uninstall(), assume_yes=yes)


@app.command("quick-fix")
def quick_fix(ctx: typer.Context) -> None:
    """Restart the adb server."""
    _run(ctx, lambda client: client.quick_fix())


@app.command("remove-mod-dirs")
def remove_mod_dirs(ctx: typer.Context) -> None:
    """Delete the old libs and mods directories from the headset."""
    _run(ctx, lambda client: client.remove_old_mod_directories())


@app.command("fix-permissions")
def fix_permissions(ctx: typer.Context) -> None:
    """Make installed libraries and mods readable by the app."""
    _run(ctx, lambda client: client.fix_mod_permissions())


@app.command("restart")
def restart(ctx: typer.Context) -> None:
    """Force-stop the app and launch it again."""
    _run(ctx, lambda client: client.restart_app())


@app.command("dump")
def dump(ctx: typer.Context) -> None:
    """Write a diagnostic dump and open its folder."""
    _run(ctx, lambda client: client.create_dump())


@app.command("log")
def log(ctx: typer.Context) -> None:
    """Stream the device log to a file until interrupted or disconnected."""

    async def _stream(client: Client) -> WorkflowResult:
        result = await client.toggle_log()
        if result.failed:
            return result
        try:
            await client.wait_log_stopped()
        finally:
            if client.is_streaming:
                await client.toggle_log()
        return result

    try:
        _run(ctx, _stream)
    except KeyboardInterrupt:
        typer.echo("Stopped")


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show the effective settings."""
    try:
        settings = load_settings((ctx.obj or {}).get("config"))
    except QuestctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"App: {settings.app_id}")
    typer.echo(f"Device: {settings.device_serial or '<default>'}")
    typer.echo(f"Log file: {settings.log_file}")
    typer.echo("Mod directories:")
    for path in settings.mod_directories.paths:
        typer.echo(f"  {path}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
