"""Single-backup size rotation for the detached-process log."""

import os
from pathlib import Path


def backup_path(log_file: Path) -> Path:
    """Return the single backup location for ``log_file``."""
    return log_file.with_name(log_file.name + ".1")


def rotate_log_if_needed(log_file: Path, max_bytes: int) -> bool:
    """Move an oversized log to ``<log>.1`` and start an empty one.

    Only the newest backup is kept; an older ``.1`` file is replaced.

    Args:
        log_file: Active log file
        max_bytes: Size at or above which the log is rotated

    Returns:
        True if the log was rotated
    """
    if not log_file.is_file() or log_file.stat().st_size < max_bytes:
        return False
    os.replace(log_file, backup_path(log_file))
    log_file.touch()
    return True
