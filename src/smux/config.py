"""XDG config loading/saving."""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import TypedDict

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from smux.launcher import DEFAULT_EDITOR_APP, DEFAULT_RESTART_DELAY_SECONDS, DEFAULT_TERMINAL_APP
from smux.mcp_merge import MCPTarget, default_targets
from smux.paths import expand_user_path

DEFAULT_CONFIG_PATH = Path("~/.config/smux/config.toml").expanduser()
DEFAULT_STORAGE_DIR = "~/.smux"
STORAGE_DIR_ENV = "SMUX_HOME"
MAX_RESTART_DELAY_SECONDS = 30.0


class MCPTargetEntry(TypedDict):
    app_name: str
    config_dir: str
    config_file: str


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    storage_dir: str = DEFAULT_STORAGE_DIR
    restart_delay_seconds: float = Field(
        default=DEFAULT_RESTART_DELAY_SECONDS, ge=0, le=MAX_RESTART_DELAY_SECONDS
    )
    terminal_app: str = DEFAULT_TERMINAL_APP
    editor_app: str = DEFAULT_EDITOR_APP
    mcp_targets: dict[str, MCPTargetEntry] = Field(default_factory=dict)

    @property
    def storage_path(self) -> Path:
        return expand_user_path(self.storage_dir)

    def resolved_mcp_targets(self) -> list[MCPTarget]:
        if not self.mcp_targets:
            return default_targets()
        return [
            MCPTarget(
                name=name,
                app_name=entry["app_name"],
                config_dir=expand_user_path(entry["config_dir"]),
                config_file=entry["config_file"],
            )
            for name, entry in sorted(self.mcp_targets.items())
        ]


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def _non_empty_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _normalize_mcp_targets(value: object) -> dict[str, MCPTargetEntry]:
    if not isinstance(value, dict):
        return {}
    normalized: dict[str, MCPTargetEntry] = {}
    for name, payload in value.items():
        if not isinstance(name, str) or not name.strip() or not isinstance(payload, dict):
            continue
        app_name = _non_empty_str(payload.get("app_name"))
        config_dir = _non_empty_str(payload.get("config_dir"))
        config_file = _non_empty_str(payload.get("config_file"))
        if app_name is None or config_dir is None or config_file is None:
            continue
        normalized[name.strip()] = MCPTargetEntry(
            app_name=app_name,
            config_dir=config_dir,
            config_file=config_file,
        )
    return normalized


def _sanitize(raw: dict[str, object]) -> AppConfig:
    cfg = AppConfig()

    storage_dir = _non_empty_str(raw.get("storage_dir"))
    if storage_dir is not None:
        cfg.storage_dir = storage_dir

    restart_delay = raw.get("restart_delay_seconds", cfg.restart_delay_seconds)
    if (
        isinstance(restart_delay, (int, float))
        and not isinstance(restart_delay, bool)
        and 0 <= restart_delay <= MAX_RESTART_DELAY_SECONDS
    ):
        cfg.restart_delay_seconds = float(restart_delay)

    terminal_app = _non_empty_str(raw.get("terminal_app"))
    if terminal_app is not None:
        cfg.terminal_app = terminal_app

    editor_app = _non_empty_str(raw.get("editor_app"))
    if editor_app is not None:
        cfg.editor_app = editor_app

    cfg.mcp_targets = _normalize_mcp_targets(raw.get("mcp_targets", {}))
    return cfg


def _apply_env(cfg: AppConfig) -> AppConfig:
    env_home = os.getenv(STORAGE_DIR_ENV, "").strip()
    if env_home:
        cfg.storage_dir = env_home
    return cfg


def load_config(path: str | Path | None = None) -> AppConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _apply_env(AppConfig())
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _apply_env(AppConfig())
    if not isinstance(raw, dict):
        return _apply_env(AppConfig())
    return _apply_env(_sanitize(raw))


def save_config(config: AppConfig, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        f"storage_dir = {_toml_scalar(config.storage_dir)}",
        f"restart_delay_seconds = {_toml_scalar(float(config.restart_delay_seconds))}",
        f"terminal_app = {_toml_scalar(config.terminal_app)}",
        f"editor_app = {_toml_scalar(config.editor_app)}",
    ]

    for name, entry in sorted(_normalize_mcp_targets(config.mcp_targets).items()):
        lines.extend(
            [
                "",
                f'[mcp_targets."{_escape(name)}"]',
                f"app_name = {_toml_scalar(entry['app_name'])}",
                f"config_dir = {_toml_scalar(entry['config_dir'])}",
                f"config_file = {_toml_scalar(entry['config_file'])}",
            ]
        )

    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved
