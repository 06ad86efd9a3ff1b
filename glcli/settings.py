"""Runtime settings for the gpt-load operator.

Settings are resolved once at startup from the process environment and passed
to every component explicitly. Recognized variables:

    SERVICE_NAME  -> systemd unit name (default: gpt-load)
    AUTH_KEY      -> auth key used only when the environment file has none
    EDITOR        -> editor for 'glcli edit' (default: vi)
    GLCLI_DEBUG=1 -> echo external commands before running them
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_SERVICE_NAME = "gpt-load"
DEFAULT_BIN_PATH = Path("/usr/local/bin/gpt-load")
DEFAULT_ENV_DIR = Path("/etc/gpt-load")
DEFAULT_UNIT_DIR = Path("/etc/systemd/system")
DEFAULT_EDITOR = "vi"
MAX_LOG_BYTES = 5 * 1024 * 1024

# Variables forwarded through sudo when the CLI relaunches itself elevated.
FORWARDED_ENV_VARS = ("SERVICE_NAME", "AUTH_KEY", "EDITOR", "GLCLI_DEBUG")


def _env_flag(value: Optional[str]) -> bool:
    """Interpret an environment variable as a boolean switch."""
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Paths and options describing one gpt-load installation."""

    service_name: str = DEFAULT_SERVICE_NAME
    bin_path: Path = DEFAULT_BIN_PATH
    env_dir: Path = DEFAULT_ENV_DIR
    unit_dir: Path = DEFAULT_UNIT_DIR
    work_dir: Path = field(default_factory=Path.cwd)
    editor: str = DEFAULT_EDITOR
    auth_key_override: Optional[str] = None
    max_log_bytes: int = MAX_LOG_BYTES
    debug: bool = False

    @property
    def env_file(self) -> Path:
        """Canonical environment file."""
        return self.env_dir / "env"

    @property
    def log_dir(self) -> Path:
        """Directory holding the detached-process log."""
        return self.env_dir / "logs"

    @property
    def log_file(self) -> Path:
        """Log file the detached process appends to."""
        return self.log_dir / f"{self.bin_path.name}.out"

    @property
    def state_file(self) -> Path:
        """File recording which backend the last install chose."""
        return self.env_dir / "backend"

    @property
    def unit_name(self) -> str:
        """systemd unit name derived from the service name."""
        return f"{self.service_name}.service"

    @property
    def unit_path(self) -> Path:
        """Location of the systemd unit file."""
        return self.unit_dir / self.unit_name

    @property
    def staged_artifact(self) -> Path:
        """Where a pre-built binary must be uploaded before installing."""
        return self.work_dir / "dist" / self.bin_path.name

    @property
    def one_click_marker(self) -> Path:
        """Present only when running from an unpacked one-click bundle."""
        return self.work_dir / "scripts" / "one-click.sh"

    @classmethod
    def from_environ(
        cls, environ: Optional[Mapping[str, str]] = None, work_dir: Optional[Path] = None
    ) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)
            work_dir: Directory holding ``dist/`` and ``.env`` (defaults to cwd)

        Returns:
            A populated Settings instance
        """
        env = os.environ if environ is None else environ
        return cls(
            service_name=env.get("SERVICE_NAME") or DEFAULT_SERVICE_NAME,
            work_dir=work_dir or Path.cwd(),
            editor=env.get("EDITOR") or DEFAULT_EDITOR,
            auth_key_override=env.get("AUTH_KEY") or None,
            debug=_env_flag(env.get("GLCLI_DEBUG")),
        )
