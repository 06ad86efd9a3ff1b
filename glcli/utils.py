"""Shared utility functions for the gpt-load operator CLI."""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import click


class ExitCodes:
    """Standard exit codes for CLI operations."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    INTERRUPTED = 130


def format_success(message: str, data: Optional[Dict[str, Any]] = None) -> None:
    """Format success messages consistently.

    Args:
        message: Success message to display
        data: Optional data to display with the message
    """
    click.echo(f"✓ {message}")
    if data:
        for key, value in data.items():
            click.echo(f"  {key}: {value}")


def format_warning(message: str) -> None:
    """Print a warning line to stderr."""
    click.echo(f"⚠️  {message}", err=True)


def echo_command(args: Any, enabled: bool) -> None:
    """Echo an external command to stderr when debug output is enabled."""
    if enabled:
        click.echo("$ " + " ".join(str(a) for a in args), err=True)


def atomic_write_text(path: Path, content: str, mode: Optional[int] = None) -> None:
    """Write text to ``path`` so readers see either the old or the new content.

    The data is written to a temporary file in the same directory, fsynced and
    renamed over the target. The temporary file is removed if anything fails.

    Args:
        path: Destination file
        content: Full new file content
        mode: Permission bits for the result; defaults to the existing file's mode
    """
    if mode is None and path.exists():
        mode = path.stat().st_mode & 0o7777

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp_file:
        tmp_path = Path(tmp_file.name)
        try:
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        except BaseException:
            tmp_file.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
