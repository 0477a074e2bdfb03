"""Distribute workspace MCP servers into third-party application configs."""

from __future__ import annotations

import json
import logging as py_logging
import shutil
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from smux.models import MCPServerConfig
from smux.paths import expand_user_path
from smux.store import write_json_atomic

logger = py_logging.getLogger(__name__)

MCP_SERVERS_KEY = "mcpServers"
BACKUP_SUFFIX = ".backup"


@dataclass(frozen=True)
class MCPTarget:
    name: str
    app_name: str
    config_dir: Path
    config_file: str

    @property
    def config_path(self) -> Path:
        return self.config_dir / self.config_file

    @property
    def backup_path(self) -> Path:
        return self.config_dir / f"{self.config_file}{BACKUP_SUFFIX}"


def default_targets() -> list[MCPTarget]:
    return [
        MCPTarget(
            name="claude-desktop",
            app_name="Claude",
            config_dir=expand_user_path("~/Library/Application Support/Claude"),
            config_file="claude_desktop_config.json",
        ),
    ]


class MergeStatus(str, Enum):
    UPDATED = "updated"
    NOT_INSTALLED = "not-installed"
    FAILED = "failed"


@dataclass(frozen=True)
class MergeOutcome:
    target: MCPTarget
    status: MergeStatus
    message: str = ""
    backup_path: Path | None = None

    @property
    def updated(self) -> bool:
        return self.status == MergeStatus.UPDATED


def serialize_mcp_servers(servers: Mapping[str, MCPServerConfig]) -> dict[str, dict[str, object]]:
    return {name: config.to_payload() for name, config in servers.items()}


class MCPConfigMerger:
    """Replaces the ``mcpServers`` key of each target's JSON config.

    The key is replaced wholesale rather than merged per server; every
    other top-level key of the document is kept. A failure for one target
    never affects the others.
    """

    def __init__(self, targets: Iterable[MCPTarget] | None = None) -> None:
        self.targets = list(targets) if targets is not None else default_targets()

    def merge(self, servers: Mapping[str, MCPServerConfig]) -> list[MergeOutcome]:
        payload = serialize_mcp_servers(servers)
        outcomes = [self.merge_target(target, payload) for target in self.targets]
        logger.debug(
            "MCP merge finished targets=%s updated=%s",
            len(outcomes),
            sum(1 for item in outcomes if item.updated),
        )
        return outcomes

    def merge_target(self, target: MCPTarget, payload: dict[str, dict[str, object]]) -> MergeOutcome:
        if not target.config_dir.is_dir():
            logger.info("mcp-merge target-missing target=%s dir=%s", target.name, target.config_dir)
            return MergeOutcome(
                target=target,
                status=MergeStatus.NOT_INSTALLED,
                message=f"{target.app_name} is not installed ({target.config_dir} not found)",
            )

        path = target.config_path
        backup_path: Path | None = None
        document: dict[str, object] = {}
        if path.exists():
            backup_path = target.backup_path
            try:
                shutil.copy2(path, backup_path)
            except OSError as exc:
                logger.error("mcp-merge backup-failed target=%s path=%s", target.name, backup_path)
                return MergeOutcome(
                    target=target,
                    status=MergeStatus.FAILED,
                    message=f"Could not back up {path}: {exc.strerror or exc}",
                )

            try:
                raw = json.loads(path.read_text(encoding="utf-8-sig"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                logger.warning("mcp-merge parse-failed target=%s path=%s", target.name, path)
                return MergeOutcome(
                    target=target,
                    status=MergeStatus.FAILED,
                    message=f"{path} is not valid JSON; left unchanged",
                    backup_path=backup_path,
                )
            except OSError as exc:
                return MergeOutcome(
                    target=target,
                    status=MergeStatus.FAILED,
                    message=f"Could not read {path}: {exc.strerror or exc}",
                    backup_path=backup_path,
                )
            if not isinstance(raw, dict):
                logger.warning("mcp-merge parse-failed target=%s path=%s reason=not-object", target.name, path)
                return MergeOutcome(
                    target=target,
                    status=MergeStatus.FAILED,
                    message=f"{path} does not contain a JSON object; left unchanged",
                    backup_path=backup_path,
                )
            document = raw

        document[MCP_SERVERS_KEY] = payload
        try:
            write_json_atomic(path, document)
        except OSError as exc:
            logger.error("mcp-merge write-failed target=%s path=%s", target.name, path)
            return MergeOutcome(
                target=target,
                status=MergeStatus.FAILED,
                message=f"Could not write {path}: {exc.strerror or exc}",
                backup_path=backup_path,
            )

        logger.info("mcp-merge applied target=%s servers=%s path=%s", target.name, len(payload), path)
        return MergeOutcome(
            target=target,
            status=MergeStatus.UPDATED,
            message=f"Updated {path}",
            backup_path=backup_path,
        )
