"""Path expansion helpers."""

from __future__ import annotations

from pathlib import Path


def expand_user_path(value: str | Path) -> Path:
    """Expand a leading ``~`` to the user's home directory.

    Paths without ``~`` are returned unchanged. When the home directory
    cannot be determined the path is returned as given.
    """
    path = Path(value)
    try:
        return path.expanduser()
    except RuntimeError:
        return path


def expand_user_str(value: str) -> str:
    return str(expand_user_path(value.strip()))
