"""Runtime operations against an installed gpt-load service."""

import shlex
import shutil
from typing import Any, Dict, Optional, Sequence

import click

from . import privileges
from .auth_key import AUTH_KEY_NAME
from .backends import (
    Backend,
    BackendKind,
    DetachedProcess,
    backend_for,
    detect_backend,
    read_backend,
)
from .env_file import read_value
from .errors import ConfigNotFound
from .settings import Settings
from .system import HostSystem
from .utils import ExitCodes, format_success


class LifecycleController:
    """Dispatch start/stop/logs/edit/uninstall to the installed backend.

    Nothing is cached between calls: each operation re-reads the backend
    state file and the filesystem.
    """

    def __init__(self, settings: Settings, system: HostSystem) -> None:
        """Bind the controller to an installation and a host."""
        self.settings = settings
        self.system = system

    def backend(self) -> Backend:
        """Return the backend recorded at install time (or probed)."""
        return backend_for(detect_backend(self.settings, self.system), self.settings, self.system)

    def _elevate_detached(self, backend: Backend, command: Sequence[str]) -> Optional[int]:
        """Relaunch under sudo when a detached process needs root-owned files."""
        if backend.kind is not BackendKind.DETACHED:
            return None
        return privileges.acquire(self.settings, self.system, command)

    def start(self, command: Sequence[str] = ("start",)) -> int:
        """Start the service and return the exit status."""
        backend = self.backend()
        relaunched = self._elevate_detached(backend, command)
        if relaunched is not None:
            return relaunched
        backend.start()
        return ExitCodes.SUCCESS

    def stop(self, command: Sequence[str] = ("stop",)) -> int:
        """Stop the service. Finding nothing to stop is not an error."""
        backend = self.backend()
        relaunched = self._elevate_detached(backend, command)
        if relaunched is not None:
            return relaunched
        backend.stop()
        return ExitCodes.SUCCESS

    def logs(self) -> int:
        """Follow the service output until interrupted."""
        try:
            return self.backend().logs()
        except KeyboardInterrupt:
            click.echo("")
            return ExitCodes.SUCCESS

    def edit(self) -> int:
        """Open the environment file in the configured editor and wait for it."""
        env_file = self.settings.env_file
        if not env_file.is_file():
            raise ConfigNotFound(f"Config file not found: {env_file}")
        cmd = shlex.split(self.settings.editor) + [str(env_file)]
        return self.system.run(cmd, check=False)

    def uninstall(self, command: Sequence[str] = ("uninstall",)) -> int:
        """Remove the service, the binary and the configuration directory.

        Service teardown steps are best-effort; file removal always runs.
        """
        relaunched = privileges.acquire(self.settings, self.system, command)
        if relaunched is not None:
            return relaunched

        s = self.settings
        if detect_backend(s, self.system) is BackendKind.SYSTEMD:
            backend_for(BackendKind.SYSTEMD, s, self.system).remove()
        DetachedProcess(s, self.system).remove()

        s.bin_path.unlink(missing_ok=True)
        shutil.rmtree(s.env_dir, ignore_errors=True)
        format_success(f"Uninstalled {s.service_name}.")
        return ExitCodes.SUCCESS

    def status(self) -> Dict[str, Any]:
        """Describe the installation without revealing secrets."""
        s = self.settings
        recorded = read_backend(s)
        backend = recorded or detect_backend(s, self.system)
        return {
            "service": s.service_name,
            "backend": backend.value,
            "backend_source": "recorded" if recorded else "probed",
            "binary": str(s.bin_path),
            "binary_installed": s.bin_path.is_file(),
            "env_file": str(s.env_file),
            "env_file_present": s.env_file.is_file(),
            "auth_key_configured": bool(read_value(AUTH_KEY_NAME, s.env_file)),
            "unit_file": str(s.unit_path),
            "unit_file_present": s.unit_path.is_file(),
            "log_file": str(s.log_file),
        }
