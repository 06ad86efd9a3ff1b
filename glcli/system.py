"""Host capabilities used by the installer and lifecycle commands.

All interaction with external tools (systemctl, journalctl, pkill, tail, the
editor, sudo) and with the OS random source goes through ``HostSystem`` so
tests can substitute a fake implementation.
"""

import os
import secrets
import shutil
import subprocess
import time
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .errors import CommandFailed, SecretGenerationUnavailable
from .utils import echo_command


class HostSystem:
    """Real host implementation backed by subprocess and the OS."""

    def __init__(self, debug: bool = False) -> None:
        """Create a host wrapper.

        Args:
            debug: Echo each external command to stderr before running it
        """
        self.debug = debug

    def which(self, name: str) -> Optional[str]:
        """Return the full path of an executable on PATH, or None."""
        return shutil.which(name)

    def is_privileged(self) -> bool:
        """Return True when running as root."""
        return os.geteuid() == 0

    def run(self, args: Sequence[str], check: bool = True) -> int:
        """Run a command attached to the current terminal and wait for it.

        Args:
            args: Command line
            check: Raise CommandFailed on a non-zero exit status

        Returns:
            The command's exit status
        """
        echo_command(args, self.debug)
        try:
            returncode = subprocess.run(list(args)).returncode  # noqa: S603
        except FileNotFoundError:
            returncode = 127
        if check and returncode != 0:
            raise CommandFailed(args, returncode)
        return returncode

    def spawn_detached(
        self,
        args: Sequence[str],
        log_path: Path,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Start a process in its own session and return without waiting.

        stdout and stderr are appended to ``log_path``. The caller keeps no
        handle on the child; the returned PID is informational only.
        """
        echo_command(args, self.debug)
        child_env = dict(os.environ)
        if env:
            child_env.update(env)
        with open(log_path, "ab") as log_fd:
            proc = subprocess.Popen(  # noqa: S603
                list(args),
                stdin=subprocess.DEVNULL,
                stdout=log_fd,
                stderr=log_fd,
                cwd=str(cwd) if cwd else None,
                env=child_env,
                start_new_session=True,
            )
        return proc.pid

    def terminate_matching(self, pattern: str) -> bool:
        """Signal every process whose command line contains ``pattern``.

        Returns:
            True if at least one process matched
        """
        if not self.which("pkill"):
            return False
        return self.run(["pkill", "-f", pattern], check=False) == 0

    def is_running(self, pattern: str) -> bool:
        """Return True if a process whose command line contains ``pattern`` exists."""
        if not self.which("pgrep"):
            return False
        args = ["pgrep", "-f", pattern]
        echo_command(args, self.debug)
        result = subprocess.run(args, stdout=subprocess.DEVNULL)  # noqa: S603
        return result.returncode == 0

    def wait_for_exit(self, pattern: str, timeout: float, interval: float = 0.2) -> bool:
        """Poll until no process matches ``pattern`` or ``timeout`` seconds pass.

        Returns:
            True if every matching process exited in time
        """
        for _ in range(max(1, int(timeout / interval))):
            if not self.is_running(pattern):
                return True
            time.sleep(interval)
        return not self.is_running(pattern)

    def random_bytes(self, count: int) -> bytes:
        """Return ``count`` bytes from the OS cryptographic random source."""
        try:
            return secrets.token_bytes(count)
        except (NotImplementedError, OSError) as exc:
            raise SecretGenerationUnavailable(
                f"No secure random source is available on this host: {exc}"
            )
