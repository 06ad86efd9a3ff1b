"""Unit test configuration.

Provides a fake host so no test runs systemctl, sudo, pkill or a real
background process, and settings rooted in a temporary directory.
"""

import os
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import pytest

from glcli.context import AppContext
from glcli.errors import CommandFailed, SecretGenerationUnavailable
from glcli.settings import Settings
from glcli.system import HostSystem


class FakeSystem(HostSystem):
    """In-memory stand-in for the host.

    Records every command, pretends detached processes are running until they
    are terminated by pattern, and can simulate missing tools, a non-root user,
    failing commands, slow-exiting processes or a host without a secure random
    source.
    """

    def __init__(
        self,
        tools: Iterable[str] = ("systemctl", "journalctl", "sudo", "pkill", "pgrep", "tail"),
        privileged: bool = True,
        secure_random: bool = True,
        failing: Iterable[str] = (),
        exit_polls: int = 0,
    ) -> None:
        """Configure which capabilities the fake host offers.

        ``exit_polls`` is how many ``is_running`` checks a terminated process
        still answers before it is gone.
        """
        super().__init__(debug=False)
        self.tools = set(tools)
        self.privileged = privileged
        self.secure_random = secure_random
        self.failing = set(failing)
        self.exit_polls = exit_polls
        self.commands: List[List[str]] = []
        self.processes: Dict[int, List[str]] = {}
        self.exiting: Dict[int, List[str]] = {}
        self.polls = 0
        self.spawned_while_exiting = False
        self._remaining = 0
        self.spawn_env: Optional[Mapping[str, str]] = None
        self._next_pid = 4000

    def which(self, name: str) -> Optional[str]:
        """Report only the configured tools as installed."""
        return f"/usr/bin/{name}" if name in self.tools else None

    def is_privileged(self) -> bool:
        """Return the configured root flag."""
        return self.privileged

    def run(self, args: Sequence[str], check: bool = True) -> int:
        """Record the command; fail it if it contains a configured substring."""
        cmd = [str(a) for a in args]
        self.commands.append(cmd)
        returncode = 1 if any(f in " ".join(cmd) for f in self.failing) else 0
        if check and returncode != 0:
            raise CommandFailed(cmd, returncode)
        return returncode

    def spawn_detached(
        self,
        args: Sequence[str],
        log_path: Path,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Register a pretend process and write a line to its log."""
        if self.exiting:
            self.spawned_while_exiting = True
        self._next_pid += 1
        self.processes[self._next_pid] = [str(a) for a in args]
        self.spawn_env = env
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(f"{args[0]} listening\n")
        return self._next_pid

    def terminate_matching(self, pattern: str) -> bool:
        """Signal matching processes; they exit after ``exit_polls`` checks."""
        matched = [pid for pid, cmd in self.processes.items() if pattern in " ".join(cmd)]
        for pid in matched:
            cmd = self.processes.pop(pid)
            if self.exit_polls:
                self.exiting[pid] = cmd
        self._remaining = self.exit_polls
        return bool(matched)

    def is_running(self, pattern: str) -> bool:
        """Answer like ``pgrep -f``, counting down slow exits."""
        self.polls += 1
        if self.exiting:
            if self._remaining > 0:
                self._remaining -= 1
                return True
            self.exiting.clear()
        return any(pattern in " ".join(cmd) for cmd in self.processes.values())

    def random_bytes(self, count: int) -> bytes:
        """Return OS random bytes unless configured to have no secure source."""
        if not self.secure_random:
            raise SecretGenerationUnavailable("No secure random source is available on this host")
        return os.urandom(count)

    def ran(self, *prefix: str) -> bool:
        """Return True if a command starting with ``prefix`` was run."""
        return any(cmd[: len(prefix)] == list(prefix) for cmd in self.commands)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings whose every path lives under tmp_path."""
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    return Settings(
        bin_path=tmp_path / "usr" / "local" / "bin" / "gpt-load",
        env_dir=tmp_path / "etc" / "gpt-load",
        unit_dir=tmp_path / "etc" / "systemd" / "system",
        work_dir=work_dir,
        editor="nano -w",
    )


@pytest.fixture
def system() -> FakeSystem:
    """Root host with systemd and every tool available."""
    return FakeSystem()


@pytest.fixture
def app(settings: Settings, system: FakeSystem) -> AppContext:
    """CLI context wired to the fake host."""
    return AppContext(settings=settings, system=system)


@pytest.fixture
def staged(settings: Settings) -> Path:
    """A pre-built binary uploaded to dist/ and a .env.example template."""
    artifact = settings.staged_artifact
    artifact.parent.mkdir(parents=True)
    artifact.write_bytes(b"\x7fELF fake gpt-load")
    (settings.work_dir / ".env.example").write_text("PORT=3001\nAUTH_KEY=\n")
    return artifact


@pytest.fixture
def installed(settings: Settings) -> Path:
    """An installed binary and canonical environment file."""
    settings.bin_path.parent.mkdir(parents=True)
    settings.bin_path.write_bytes(b"\x7fELF fake gpt-load")
    settings.env_dir.mkdir(parents=True)
    settings.env_file.write_text("PORT=3001\nAUTH_KEY=sk-prod-existing\n")
    return settings.bin_path


@pytest.fixture
def make_system() -> Callable[..., FakeSystem]:
    """Factory for fake hosts with non-default capabilities."""
    return FakeSystem
