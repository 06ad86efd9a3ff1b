"""Error types raised by glcli operations.

Every error is terminal for the current invocation. They derive from
``click.ClickException`` so click prints a single diagnostic line and exits
with ``ExitCodes.GENERAL_ERROR``.
"""

from typing import IO, Any, Optional

import click

from .utils import ExitCodes


class GlcliError(click.ClickException):
    """Base class for operator-facing failures."""

    exit_code = ExitCodes.GENERAL_ERROR

    def show(self, file: Optional[IO[Any]] = None) -> None:
        """Print the diagnostic in the CLI's error style."""
        click.echo(f"✗ Error: {self.format_message()}", err=True, file=file)


class MissingConfiguration(GlcliError):
    """No canonical environment file, local .env or .env.example was found."""


class MissingArtifact(GlcliError):
    """The pre-built gpt-load binary is not where it is expected."""


class SecretGenerationUnavailable(GlcliError):
    """The host offers no cryptographically secure random source."""


class PrivilegeUnavailable(GlcliError):
    """Elevated access is required but neither root nor sudo is available."""


class LogFileNotFound(GlcliError):
    """The detached-process log file does not exist."""


class ConfigNotFound(GlcliError):
    """The canonical environment file does not exist."""


class LaunchFailed(GlcliError):
    """The detached process could not be started."""


class ProcessStillRunning(GlcliError):
    """A previous detached process did not exit after being signalled."""


class InvalidCommand(GlcliError):
    """An unknown command was requested."""


class CommandFailed(GlcliError):
    """An external tool exited with a non-zero status."""

    def __init__(self, args: Any, returncode: int) -> None:
        """Record the failed command line and its exit status."""
        self.command = [str(a) for a in args]
        self.returncode = returncode
        super().__init__(f"Command failed ({returncode}): {' '.join(self.command)}")
