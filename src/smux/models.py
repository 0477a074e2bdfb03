"""Workspace domain models and MCP server parsing."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from smux.errors import ExitCode, SmuxError
from smux.paths import expand_user_path

SAFARI_APP_NAME = "safari"

_INVALID_NAME_CHARS = ("/", "\\", "\x00")


def validate_workspace_name(value: str) -> str:
    name = value if isinstance(value, str) else ""
    if not name.strip():
        raise SmuxError(
            "Workspace name must not be empty.",
            code=ExitCode.VALIDATION_ERROR,
            hint="Provide a non-empty workspace name.",
        )
    if any(char in name for char in _INVALID_NAME_CHARS) or name.startswith("."):
        raise SmuxError(
            f"Invalid workspace name: {name}",
            code=ExitCode.VALIDATION_ERROR,
            hint="Workspace names cannot contain path separators or start with '.'.",
        )
    return name


class WindowPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    width: int
    height: int


class ApplicationConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    name: str = Field(min_length=1)
    bundle_identifier: str | None = Field(default=None, alias="bundleIdentifier")
    # Stored for future window placement; switching does not apply them yet.
    window_positions: list[WindowPosition] | None = Field(default=None, alias="windowPositions")
    safari_profile: str | None = Field(default=None, alias="safariProfile")

    @property
    def uses_browser_profile(self) -> bool:
        return self.name.strip().lower() == SAFARI_APP_NAME and bool(self.safari_profile)

    @property
    def launch_target(self) -> str:
        if self.bundle_identifier and self.bundle_identifier.strip():
            return self.bundle_identifier.strip()
        return self.name


class MCPServerConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    command: str
    args: list[str]
    env: dict[str, str] | None = None
    disabled: bool | None = None
    always_allow: list[str] | None = Field(default=None, alias="alwaysAllow")

    @property
    def is_disabled(self) -> bool:
        return bool(self.disabled)

    def to_payload(self) -> dict[str, object]:
        """Serialize for third-party configs, omitting absent optionals."""
        payload: dict[str, object] = {"command": self.command, "args": list(self.args)}
        if self.env is not None:
            payload["env"] = dict(self.env)
        if self.disabled is not None:
            payload["disabled"] = self.disabled
        if self.always_allow is not None:
            payload["alwaysAllow"] = list(self.always_allow)
        return payload


class Workspace(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    name: str
    applications: list[ApplicationConfig] = Field(default_factory=list)
    browser_urls: list[str] = Field(default_factory=list, alias="browserUrls")
    terminal_directories: list[str] = Field(default_factory=list, alias="terminalDirectories")
    vscode_workspace: str | None = Field(default=None, alias="vscodeWorkspace")
    mcp_servers: dict[str, MCPServerConfig] | None = Field(default=None, alias="mcpServers")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        try:
            return validate_workspace_name(value)
        except SmuxError as exc:
            raise ValueError(exc.message) from exc

    @property
    def has_mcp_servers(self) -> bool:
        return bool(self.mcp_servers)

    def to_record(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, raw: object) -> Workspace:
        return cls.model_validate(raw)

    def clone(self, name: str) -> Workspace:
        validate_workspace_name(name)
        cloned = self.model_copy(deep=True)
        cloned.name = name
        return cloned


@dataclass
class MCPParseResult:
    servers: dict[str, MCPServerConfig] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)


def _string_list(value: object) -> list[str] | None:
    if not isinstance(value, list):
        return None
    if not all(isinstance(item, str) for item in value):
        return None
    return list(value)


def _string_map(value: object) -> dict[str, str] | None:
    if not isinstance(value, dict):
        return None
    if not all(isinstance(key, str) and isinstance(item, str) for key, item in value.items()):
        return None
    return dict(value)


def parse_mcp_servers(raw: object) -> MCPParseResult:
    """Build server configs from decoded JSON, dropping malformed entries.

    Entries without a string ``command`` or a list-of-strings ``args`` are
    skipped and reported by name. Optional fields of the wrong type are
    ignored while the entry itself is kept.
    """
    result = MCPParseResult()
    if not isinstance(raw, dict):
        return result

    for server_name, payload in raw.items():
        if not isinstance(server_name, str) or not isinstance(payload, dict):
            result.skipped.append(str(server_name))
            continue
        command = payload.get("command")
        args = _string_list(payload.get("args"))
        if not isinstance(command, str) or args is None:
            result.skipped.append(server_name)
            continue

        disabled = payload.get("disabled")
        result.servers[server_name] = MCPServerConfig(
            command=command,
            args=args,
            env=_string_map(payload.get("env")),
            disabled=disabled if isinstance(disabled, bool) else None,
            always_allow=_string_list(payload.get("alwaysAllow")),
        )
    return result


def parse_mcp_servers_text(text: str) -> MCPParseResult:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SmuxError(
            "Invalid MCP server configuration JSON.",
            code=ExitCode.PARSE_ERROR,
            hint=f"Fix the JSON syntax ({exc.msg} at line {exc.lineno}).",
        ) from exc
    if not isinstance(raw, dict):
        raise SmuxError(
            "MCP server configuration must be a JSON object.",
            code=ExitCode.PARSE_ERROR,
            hint='Use the form {"server": {"command": "...", "args": []}}.',
        )
    return parse_mcp_servers(raw)


def load_mcp_servers_file(path: str | Path) -> MCPParseResult:
    resolved = expand_user_path(path)
    if not resolved.exists():
        raise SmuxError(
            f"MCP configuration file not found: {resolved}",
            code=ExitCode.NOT_FOUND,
            hint="Check the --mcp-config path.",
        )
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise SmuxError(
            f"Could not read MCP configuration file: {resolved}",
            code=ExitCode.IO_ERROR,
            hint=str(exc),
        ) from exc
    except UnicodeDecodeError as exc:
        raise SmuxError(
            f"MCP configuration file is not valid UTF-8: {resolved}",
            code=ExitCode.PARSE_ERROR,
            hint="Save the file as UTF-8 JSON.",
        ) from exc
    return parse_mcp_servers_text(text)
