"""CLI commands for installing and operating the gpt-load service."""

from typing import Any

import click

from .context import get_app
from .installer import install_or_update


def _finish(ctx: click.Context, code: int) -> None:
    """Exit with ``code`` unless it is success."""
    if code:
        ctx.exit(code)


def register_service_commands(cli: Any) -> None:
    """Register install/update/start/stop/logs/edit/uninstall on ``cli``."""

    @cli.command()
    @click.pass_context
    def install(ctx: click.Context) -> None:
        """Install gpt-load from dist/gpt-load and start it."""
        app = get_app(ctx)
        _finish(ctx, install_or_update(app.settings, app.system, command=["install"]))

    @cli.command()
    @click.pass_context
    def update(ctx: click.Context) -> None:
        """Replace the installed binary with dist/gpt-load and restart."""
        app = get_app(ctx)
        _finish(ctx, install_or_update(app.settings, app.system, command=["update"]))

    @cli.command()
    @click.pass_context
    def start(ctx: click.Context) -> None:
        """Start the service."""
        _finish(ctx, get_app(ctx).lifecycle.start(command=["start"]))

    @cli.command()
    @click.pass_context
    def stop(ctx: click.Context) -> None:
        """Stop the service."""
        _finish(ctx, get_app(ctx).lifecycle.stop(command=["stop"]))

    @cli.command()
    @click.pass_context
    def logs(ctx: click.Context) -> None:
        """Follow service logs (Ctrl-C to stop)."""
        _finish(ctx, get_app(ctx).lifecycle.logs())

    @cli.command()
    @click.pass_context
    def edit(ctx: click.Context) -> None:
        """Open the environment file in $EDITOR."""
        _finish(ctx, get_app(ctx).lifecycle.edit())

    @cli.command()
    @click.pass_context
    def uninstall(ctx: click.Context) -> None:
        """Remove the service, the binary and /etc/gpt-load."""
        _finish(ctx, get_app(ctx).lifecycle.uninstall(command=["uninstall"]))
