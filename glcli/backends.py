"""Deployment backends for the gpt-load service.

Two realizations exist:

* ``ManagedService`` registers a systemd unit with restart-on-failure and
  leaves logging to the journal.
* ``DetachedProcess`` starts the binary in its own session with output
  appended to a size-rotated log file and no supervision.

The backend chosen by ``install`` is recorded in a small state file next to the
environment file. Lifecycle commands read it and only probe for ``systemctl``
when the file is missing (installs made before the state file existed).
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union

import click

from .env_file import read_entries
from .errors import (
    CommandFailed,
    LaunchFailed,
    LogFileNotFound,
    MissingArtifact,
    ProcessStillRunning,
)
from .log_rotation import rotate_log_if_needed
from .privileges import command_prefix
from .settings import Settings
from .system import HostSystem
from .utils import atomic_write_text, format_success, format_warning

# Seconds an update waits for a signalled detached process to exit.
STOP_TIMEOUT_SECONDS = 10


class BackendKind(str, Enum):
    """Which realization of the service is installed."""

    SYSTEMD = "systemd"
    DETACHED = "detached"


def read_backend(settings: Settings) -> Optional[BackendKind]:
    """Return the backend recorded at install time, or None if unknown."""
    try:
        raw = settings.state_file.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    try:
        return BackendKind(raw)
    except ValueError:
        return None


def write_backend(settings: Settings, kind: BackendKind) -> None:
    """Record the backend chosen by install."""
    settings.state_file.parent.mkdir(parents=True, exist_ok=True)
    atomic_write_text(settings.state_file, f"{kind.value}\n", mode=0o644)


def probe_backend(system: HostSystem) -> BackendKind:
    """Pick a backend from what the host offers right now."""
    return BackendKind.SYSTEMD if system.which("systemctl") else BackendKind.DETACHED


def detect_backend(settings: Settings, system: HostSystem) -> BackendKind:
    """Return the recorded backend, probing the host when none is recorded."""
    return read_backend(settings) or probe_backend(system)


class ManagedService:
    """gpt-load supervised by systemd."""

    kind = BackendKind.SYSTEMD

    def __init__(self, settings: Settings, system: HostSystem) -> None:
        """Bind the backend to an installation and a host."""
        self.settings = settings
        self.system = system

    def render_unit(self) -> str:
        """Return the systemd unit file content."""
        s = self.settings
        return (
            "[Unit]\n"
            "Description=GPT-Load\n"
            "After=network.target\n"
            "\n"
            "[Service]\n"
            "Type=simple\n"
            f"WorkingDirectory={s.env_dir}\n"
            f"EnvironmentFile={s.env_file}\n"
            f"ExecStart={s.bin_path}\n"
            "Restart=on-failure\n"
            "RestartSec=5\n"
            "\n"
            "[Install]\n"
            "WantedBy=multi-user.target\n"
        )

    def _systemctl(self, *args: str, check: bool = True) -> int:
        """Run systemctl, through sudo when not root."""
        cmd = command_prefix(self.system) + ["systemctl", *args]
        return self.system.run(cmd, check=check)

    def install(self) -> None:
        """Write the unit file, enable it and (re)start the service."""
        unit_path = self.settings.unit_path
        click.echo(f"Installing systemd service: {self.settings.service_name}")
        unit_path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_text(unit_path, self.render_unit(), mode=0o644)
        self._systemctl("daemon-reload")
        self._systemctl("enable", self.settings.unit_name)
        # restart also starts an inactive unit and picks up a replaced binary
        self._systemctl("restart", self.settings.unit_name)
        format_success(
            "Systemd service started. Check status with: "
            f"systemctl status {self.settings.unit_name}"
        )

    def start(self) -> None:
        """Start the unit."""
        self._systemctl("start", self.settings.unit_name)
        format_success(f"Started {self.settings.unit_name}")

    def stop(self) -> bool:
        """Stop the unit; failures propagate."""
        self._systemctl("stop", self.settings.unit_name)
        format_success(f"Stopped {self.settings.unit_name}")
        return True

    def logs(self) -> int:
        """Follow the unit journal."""
        cmd = command_prefix(self.system) + ["journalctl", "-u", self.settings.unit_name, "-f"]
        return self.system.run(cmd, check=False)

    def remove(self) -> None:
        """Stop, disable and delete the unit. Every step is best-effort."""
        for args in (("stop", self.settings.unit_name), ("disable", self.settings.unit_name)):
            try:
                self._systemctl(*args)
            except CommandFailed as exc:
                format_warning(str(exc))
        self.settings.unit_path.unlink(missing_ok=True)
        try:
            self._systemctl("daemon-reload")
        except CommandFailed as exc:
            format_warning(str(exc))


class DetachedProcess:
    """gpt-load running as a plain background process."""

    kind = BackendKind.DETACHED

    def __init__(self, settings: Settings, system: HostSystem) -> None:
        """Bind the backend to an installation and a host."""
        self.settings = settings
        self.system = system

    @property
    def pattern(self) -> str:
        """Command-line fragment identifying the running service."""
        return str(self.settings.bin_path)

    def launch(self) -> int:
        """Start the installed binary in the background and return its PID.

        Raises:
            MissingArtifact: If the binary is not installed
            LaunchFailed: If the log cannot be prepared or the process cannot start
        """
        s = self.settings
        if not s.bin_path.is_file():
            raise MissingArtifact(f"gpt-load is not installed at {s.bin_path}.")
        try:
            s.log_dir.mkdir(parents=True, exist_ok=True)
            if rotate_log_if_needed(s.log_file, s.max_log_bytes):
                click.echo(f"Rotated {s.log_file} to {s.log_file.name}.1")
            click.echo(f"Starting {s.bin_path.name} in background (logs: {s.log_file})")
            pid = self.system.spawn_detached(
                [str(s.bin_path)],
                s.log_file,
                cwd=s.env_dir,
                env=dict(read_entries(s.env_file)),
            )
        except OSError as exc:
            raise LaunchFailed(f"Could not start {s.bin_path.name}: {exc}")
        format_success(f"Started {s.bin_path.name} in background", {"PID": pid})
        return pid

    def install(self) -> None:
        """Replace a running process with the freshly installed binary."""
        if self.system.terminate_matching(self.pattern):
            click.echo(f"Waiting for the previous {self.settings.bin_path.name} to exit...")
            if not self.system.wait_for_exit(self.pattern, STOP_TIMEOUT_SECONDS):
                raise ProcessStillRunning(
                    f"{self.settings.bin_path.name} did not exit within "
                    f"{STOP_TIMEOUT_SECONDS} seconds; stop it and run 'glcli start'."
                )
        self.launch()

    def start(self) -> None:
        """Launch the installed binary."""
        self.launch()

    def stop(self) -> bool:
        """Terminate processes running the installed binary; never fails."""
        matched = self.system.terminate_matching(self.pattern)
        if matched:
            format_success(f"Stopped {self.settings.bin_path.name}")
        else:
            click.echo(f"No running {self.settings.bin_path.name} process found.")
        return matched

    def logs(self) -> int:
        """Follow the log file with ``tail -f``."""
        log_file: Path = self.settings.log_file
        if not log_file.is_file():
            raise LogFileNotFound(f"Log file not found: {log_file}")
        return self.system.run(["tail", "-f", str(log_file)], check=False)

    def remove(self) -> None:
        """Terminate a running process, if any."""
        self.system.terminate_matching(self.pattern)


Backend = Union[ManagedService, DetachedProcess]


def backend_for(kind: BackendKind, settings: Settings, system: HostSystem) -> Backend:
    """Return the backend implementation for ``kind``."""
    if kind is BackendKind.SYSTEMD:
        return ManagedService(settings, system)
    return DetachedProcess(settings, system)
