"""Interactive numbered menu shown when glcli runs without a command."""

from typing import Dict

import click

MENU_TEXT = """
GPT-Load Management Menu
[1] Install/Update
[2] Start Service
[3] Stop Service
[4] View Logs (tail -f)
[5] Edit Config
[6] Uninstall
[0] Exit"""

MENU_CHOICES: Dict[str, str] = {
    "1": "install",
    "2": "start",
    "3": "stop",
    "4": "logs",
    "5": "edit",
    "6": "uninstall",
}


def run_menu(ctx: click.Context) -> None:
    """Loop over the menu until the operator picks 0.

    Each choice invokes the matching command of the root group. Errors raised
    by a command end the session like they would on the command line.
    """
    group = ctx.command
    assert isinstance(group, click.Group)
    while True:
        click.echo(MENU_TEXT)
        choice = click.prompt("Select an option", default="", show_default=False).strip()
        if choice == "0":
            return
        name = MENU_CHOICES.get(choice)
        if name is None:
            click.echo("Invalid option.")
            continue
        command = group.get_command(ctx, name)
        assert command is not None
        ctx.invoke(command)
