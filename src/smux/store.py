"""One-file-per-record workspace persistence."""

from __future__ import annotations

import json
import logging as py_logging
import os
from pathlib import Path

from pydantic import ValidationError

from smux.errors import ExitCode, SmuxError
from smux.models import Workspace, validate_workspace_name
from smux.paths import expand_user_path

logger = py_logging.getLogger(__name__)

DEFAULT_STORAGE_DIR = Path("~/.smux")
RECORD_SUFFIX = ".json"


def write_json_atomic(path: Path, payload: object, *, indent: int = 2) -> None:
    """Write JSON through a sibling temp file so readers never see partial content."""
    temp_path = path.with_name(f".{path.name}.tmp")
    try:
        temp_path.write_text(json.dumps(payload, indent=indent, ensure_ascii=False) + "\n", encoding="utf-8")
        os.replace(temp_path, path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


class WorkspaceStore:
    """Workspace records stored as ``<directory>/<name>.json``.

    The directory listing is the only index. No locking is done: two
    writers saving the same name race and the last one wins.
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = expand_user_path(directory or DEFAULT_STORAGE_DIR)

    def path_for(self, name: str) -> Path:
        return self.directory / f"{validate_workspace_name(name)}{RECORD_SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def load(self, name: str) -> Workspace:
        path = self.path_for(name)
        if not path.is_file():
            raise SmuxError(
                f"Workspace '{name}' not found",
                code=ExitCode.NOT_FOUND,
                hint=self._available_hint(),
            )
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error("Workspace record is not valid JSON path=%s error=%s", path, exc)
            raise SmuxError(
                f"Workspace '{name}' could not be parsed",
                code=ExitCode.PARSE_ERROR,
                hint=f"Fix or recreate {path}.",
            ) from exc
        except OSError as exc:
            raise SmuxError(
                f"Workspace '{name}' could not be read",
                code=ExitCode.IO_ERROR,
                hint=str(exc),
            ) from exc

        try:
            workspace = Workspace.from_record(raw)
        except ValidationError as exc:
            logger.error("Workspace record failed validation path=%s errors=%s", path, exc.error_count())
            raise SmuxError(
                f"Workspace '{name}' is not a valid workspace record",
                code=ExitCode.PARSE_ERROR,
                hint=f"Fix or recreate {path}.",
            ) from exc
        if workspace.name != name:
            logger.error("Workspace record name mismatch path=%s stored=%s", path, workspace.name)
            raise SmuxError(
                f"Workspace record {path.name} is named '{workspace.name}', expected '{name}'",
                code=ExitCode.PARSE_ERROR,
                hint=f"Fix the name in {path} or recreate the workspace.",
            )
        logger.debug("Loaded workspace name=%s path=%s", name, path)
        return workspace

    def save(self, workspace: Workspace) -> Path:
        path = self.path_for(workspace.name)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            write_json_atomic(path, workspace.to_record())
        except OSError as exc:
            logger.error("Failed to save workspace name=%s path=%s", workspace.name, path)
            raise SmuxError(
                f"Could not write workspace '{workspace.name}'",
                code=ExitCode.IO_ERROR,
                hint=f"Check permissions for {self.directory} ({exc.strerror or exc}).",
            ) from exc
        logger.debug("Saved workspace name=%s path=%s", workspace.name, path)
        return path

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        if not path.is_file():
            raise SmuxError(
                f"Workspace '{name}' not found",
                code=ExitCode.NOT_FOUND,
                hint=self._available_hint(),
            )
        try:
            path.unlink()
        except OSError as exc:
            raise SmuxError(
                f"Could not delete workspace '{name}'",
                code=ExitCode.IO_ERROR,
                hint=str(exc),
            ) from exc
        logger.debug("Deleted workspace name=%s path=%s", name, path)

    def list_names(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(
            item.stem
            for item in self.directory.iterdir()
            if item.is_file() and item.suffix == RECORD_SUFFIX and not item.name.startswith(".")
        )

    def _available_hint(self) -> str:
        names = self.list_names()
        if not names:
            return "No workspaces exist yet; create one with 'smux create <name>'."
        return f"Available workspaces: {', '.join(names)}."
