"""Privilege checks and sudo elevation."""

import os
import sys
from pathlib import Path
from typing import Iterable, List, Optional

import click

from .errors import PrivilegeUnavailable
from .settings import FORWARDED_ENV_VARS, Settings
from .system import HostSystem


def _is_writable(path: Path) -> bool:
    """Check write access on ``path`` or, if missing, its nearest existing parent."""
    for candidate in (path, *path.parents):
        if candidate.exists():
            return os.access(candidate, os.W_OK)
    return False


def target_paths(settings: Settings, system: HostSystem) -> List[Path]:
    """Locations an install or uninstall writes to."""
    paths = [settings.bin_path.parent, settings.env_dir]
    if system.which("systemctl"):
        paths.append(settings.unit_dir)
    return paths


def needs_elevation(settings: Settings, system: HostSystem) -> bool:
    """Return True if the current user cannot write every target location."""
    if system.is_privileged():
        return False
    return not all(_is_writable(p) for p in target_paths(settings, system))


def command_prefix(system: HostSystem) -> List[str]:
    """Return the prefix needed to run a privileged external command.

    Raises:
        PrivilegeUnavailable: If not root and sudo is not installed
    """
    if system.is_privileged():
        return []
    if system.which("sudo"):
        return ["sudo"]
    raise PrivilegeUnavailable("sudo is required for this operation.")


def relaunch_command(command: Iterable[str]) -> List[str]:
    """Build the sudo command line that re-runs this CLI with ``command``."""
    return [
        "sudo",
        f"--preserve-env={','.join(FORWARDED_ENV_VARS)}",
        sys.executable,
        "-m",
        "glcli",
        *command,
    ]


def acquire(settings: Settings, system: HostSystem, command: Iterable[str]) -> Optional[int]:
    """Make sure ``command`` runs with enough privileges.

    Args:
        settings: Installation settings
        system: Host capabilities
        command: CLI arguments to replay under sudo

    Returns:
        None when the caller may proceed in-process, otherwise the exit
        status of the elevated child that already performed the command

    Raises:
        PrivilegeUnavailable: If elevation is needed but sudo is missing
    """
    if not needs_elevation(settings, system):
        return None
    if not system.which("sudo"):
        raise PrivilegeUnavailable(
            "Root privileges are required to write to "
            f"{settings.env_dir} and {settings.bin_path.parent}, and sudo is not available."
        )
    click.echo("Elevated privileges required; re-running with sudo.")
    return system.run(relaunch_command(command), check=False)
