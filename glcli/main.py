"""glcli entry points."""

import json
from pathlib import Path
from typing import Any, List, Optional, Tuple

import click
import tomllib
from tabulate import tabulate

from .context import get_app
from .errors import InvalidCommand
from .menu import run_menu
from .service_click import register_service_commands

USAGE = "Usage: glcli [install|update|start|stop|logs|edit|uninstall]"


def get_version() -> str:
    """Get version from pyproject.toml."""
    try:
        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"

        with open(pyproject_path, "rb") as f:
            pyproject_data = tomllib.load(f)

        return pyproject_data["project"]["version"]
    except Exception:
        return "unknown"


CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


class CommandGroup(click.Group):
    """Root group that reports every usage error with the short usage line."""

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        """Parse root options, turning option errors into InvalidCommand."""
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            raise InvalidCommand(f"{exc.format_message()} {USAGE}")

    def resolve_command(
        self, ctx: click.Context, args: List[str]
    ) -> Tuple[Optional[str], Optional[click.Command], List[str]]:
        """Look up a subcommand, reporting unknown names with the usage line."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError:
            raise InvalidCommand(f"Unknown command '{args[0]}'. {USAGE}")

    def invoke(self, ctx: click.Context) -> Any:
        """Run the subcommand, turning its argument errors into InvalidCommand."""
        try:
            return super().invoke(ctx)
        except click.UsageError as exc:
            raise InvalidCommand(f"{exc.format_message()} {USAGE}")


@click.group(cls=CommandGroup, context_settings=CONTEXT_SETTINGS, invoke_without_command=True)
@click.option("--version", "-v", is_flag=True, help="Show version and exit")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """glcli - install and operate the gpt-load service.

    Run without a command for the interactive menu.
    """
    if version:
        click.echo(f"glcli version {get_version()}")
        ctx.exit()
    get_app(ctx)
    if ctx.invoked_subcommand is None:
        run_menu(ctx)


@cli.command()
@click.option("--format", "-f", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def info(ctx: click.Context, format: str) -> None:
    """Show installation paths, backend and status."""
    status = get_app(ctx).lifecycle.status()

    if format == "json":
        click.echo(json.dumps(status, indent=2))
        return

    def mark(present: bool) -> str:
        return "✓" if present else "✗"

    rows = [
        ["Service", status["service"], ""],
        ["Backend", status["backend"], status["backend_source"]],
        ["Binary", status["binary"], mark(status["binary_installed"])],
        ["Config", status["env_file"], mark(status["env_file_present"])],
        ["AUTH_KEY", "configured" if status["auth_key_configured"] else "missing", ""],
    ]
    if status["backend"] == "systemd":
        rows.append(["Unit", status["unit_file"], mark(status["unit_file_present"])])
    else:
        rows.append(["Log", status["log_file"], ""])
    click.echo(tabulate(rows, headers=["Item", "Value", ""], tablefmt="github"))


register_service_commands(cli)
