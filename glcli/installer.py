"""Install or update gpt-load from a pre-built binary."""

import shutil
from typing import Sequence

import click

from . import privileges
from .auth_key import ensure_auth_key
from .backends import BackendKind, backend_for, probe_backend, write_backend
from .env_file import ensure_environment_file
from .errors import MissingArtifact
from .settings import Settings
from .system import HostSystem
from .utils import ExitCodes, format_success


def install_or_update(
    settings: Settings,
    system: HostSystem,
    command: Sequence[str] = ("install",),
) -> int:
    """Install the staged binary and start it under the best available backend.

    Steps:
      1. Require the staged artifact (``dist/gpt-load``).
      2. Acquire privileges, relaunching under sudo if needed.
      3. Bootstrap the environment file and AUTH_KEY.
      4. Move the binary into place and make it executable.
      5. Install a systemd unit, or start a detached process when
         ``systemctl`` is unavailable, and record the choice.
      6. Offer to delete the one-click bundle directory.

    Args:
        settings: Installation settings
        system: Host capabilities
        command: CLI arguments replayed if a sudo relaunch is needed

    Returns:
        Exit status; non-zero only when a sudo relaunch failed
    """
    artifact = settings.staged_artifact
    if not artifact.is_file():
        raise MissingArtifact(
            f"Missing {artifact}. Build elsewhere and upload it here before installing."
        )

    relaunched = privileges.acquire(settings, system, command)
    if relaunched is not None:
        return relaunched

    ensure_environment_file(settings)
    ensure_auth_key(settings, system)

    settings.env_dir.mkdir(parents=True, exist_ok=True)
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    settings.bin_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(artifact), str(settings.bin_path))
    settings.bin_path.chmod(0o755)
    click.echo(f"Installed binary to {settings.bin_path}")

    kind = probe_backend(system)
    backend_for(kind, settings, system).install()
    write_backend(settings, kind)
    if kind is BackendKind.DETACHED:
        click.echo(
            "Note: the process is not supervised; use 'glcli start' after a reboot or crash."
        )

    prompt_cleanup(settings)
    format_success(f"{settings.service_name} installed")
    return ExitCodes.SUCCESS


def prompt_cleanup(settings: Settings) -> bool:
    """Offer to delete the unpacked one-click bundle after a successful install.

    Only asked when the working directory is a one-click bundle. Defaults to no.

    Returns:
        True if the directory was removed
    """
    if not settings.one_click_marker.is_file():
        return False
    work_dir = settings.work_dir.resolve()
    if not click.confirm(
        f"Delete installation directory ({work_dir}) to free space?", default=False
    ):
        return False
    shutil.rmtree(work_dir)
    format_success(f"Removed {work_dir}")
    return True
