"""Environment file management for gpt-load.

The environment file is plain ``KEY=VALUE`` text. The value is everything after
the first ``=``; there is no quoting or escaping. Lines that are not the key
being written (comments, blanks, unknown keys) are preserved verbatim and in
order.
"""

import shutil
from pathlib import Path
from typing import List, Tuple

import click

from .errors import MissingConfiguration
from .settings import Settings
from .utils import atomic_write_text


def _read_lines(path: Path) -> List[str]:
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read().splitlines(keepends=True)


def _line_ending(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def read_value(key: str, path: Path) -> str:
    """Return the value of the first ``KEY=`` line, or an empty string.

    Args:
        key: Variable name
        path: Environment file to read

    Returns:
        The value, or "" when the key (or the file) is absent
    """
    if not path.exists():
        return ""
    prefix = f"{key}="
    for line in _read_lines(path):
        if line.startswith(prefix):
            return line[len(prefix) :].rstrip("\r\n")
    return ""


def read_entries(path: Path) -> List[Tuple[str, str]]:
    """Return ``(key, value)`` pairs in file order, skipping comments and blanks."""
    entries: List[Tuple[str, str]] = []
    if not path.exists():
        return entries
    for line in _read_lines(path):
        stripped = line.rstrip("\r\n")
        if not stripped.strip() or stripped.lstrip().startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        entries.append((key, value))
    return entries


def upsert(key: str, value: str, path: Path) -> None:
    """Set ``key`` to ``value`` in the environment file.

    An existing ``KEY=`` line is rewritten in place; any later duplicates of
    the same key are dropped so the file holds at most one line per key. A
    missing key is appended after a separating newline. The file is replaced
    atomically.

    Args:
        key: Variable name
        value: New value
        path: Environment file to update
    """
    prefix = f"{key}="
    lines = _read_lines(path) if path.exists() else []

    result: List[str] = []
    replaced = False
    for line in lines:
        if line.startswith(prefix):
            if replaced:
                continue
            ending = _line_ending(line) or "\n"
            result.append(f"{key}={value}{ending}")
            replaced = True
        else:
            result.append(line)

    content = "".join(result)
    if not replaced:
        content += f"\n{key}={value}\n"

    atomic_write_text(path, content)


def ensure_environment_file(settings: Settings) -> Path:
    """Make sure the canonical environment file exists.

    Resolution order: the canonical file itself, then ``.env`` in the working
    directory, then ``.env.example`` (copied to ``.env`` first). A local file is
    moved to the canonical location, creating parent directories.

    Args:
        settings: Installation settings

    Returns:
        Path of the canonical environment file

    Raises:
        MissingConfiguration: If no source file exists
    """
    canonical = settings.env_file
    if canonical.is_file():
        return canonical

    local_env = settings.work_dir / ".env"
    template = settings.work_dir / ".env.example"

    if not local_env.is_file():
        if not template.is_file():
            raise MissingConfiguration(
                f"Missing .env or .env.example in {settings.work_dir}."
            )
        shutil.copyfile(template, local_env)
        click.echo(f"Created {local_env} from {template.name}.")

    canonical.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(local_env), str(canonical))
    click.echo(f"Moved {local_env} to {canonical}.")
    return canonical
