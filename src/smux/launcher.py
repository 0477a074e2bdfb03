"""Launch capability used by workspace switching, plus the macOS backend."""

from __future__ import annotations

import logging as py_logging
import shlex
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from smux.errors import ExitCode, SmuxError
from smux.models import ApplicationConfig

logger = py_logging.getLogger(__name__)

DEFAULT_TERMINAL_APP = "Terminal"
DEFAULT_EDITOR_APP = "Visual Studio Code"
DEFAULT_RESTART_DELAY_SECONDS = 2.0
_LOG_TRUNCATE_LIMIT = 300

# User values reach AppleScript only through ``argv``; scripts are constants.
_QUIT_SCRIPT = """on run argv
    tell application (item 1 of argv) to quit
end run"""

_BROWSER_PROFILE_SCRIPT = """on run argv
    tell application "Safari" to activate
    tell application "System Events" to tell process "Safari"
        click menu item ("New " & (item 1 of argv) & " Window") of menu 1 of menu item "New Window" of menu "File" of menu bar 1
    end tell
end run"""


class LaunchAction(str, Enum):
    ACTIVATE_APP = "activate-app"
    ACTIVATE_BUNDLE = "activate-bundle"
    ACTIVATE_BROWSER_PROFILE = "activate-browser-profile"
    OPEN_URL = "open-url"
    OPEN_TERMINAL = "open-terminal"
    OPEN_EDITOR = "open-editor"
    QUIT_APP = "quit-app"


@dataclass(frozen=True)
class LaunchCommand:
    action: LaunchAction
    target: str
    params: dict[str, str] = field(default_factory=dict)


class Launcher(Protocol):
    def launch_application(self, config: ApplicationConfig) -> None: ...

    def open_url(self, url: str) -> None: ...

    def open_terminal(self, path: str) -> None: ...

    def open_editor_project(self, path: str) -> None: ...

    def restart_application(self, name: str) -> None: ...


def command_for_log(args: list[str]) -> str:
    if not args:
        return ""
    value = " ".join(shlex.quote(part) for part in args).strip()
    if len(value) <= _LOG_TRUNCATE_LIMIT:
        return value
    return value[: _LOG_TRUNCATE_LIMIT - 3] + "..."


def application_command(config: ApplicationConfig) -> LaunchCommand:
    if config.uses_browser_profile:
        return LaunchCommand(
            LaunchAction.ACTIVATE_BROWSER_PROFILE,
            config.name,
            {"profile": config.safari_profile or ""},
        )
    if config.bundle_identifier and config.bundle_identifier.strip():
        return LaunchCommand(LaunchAction.ACTIVATE_BUNDLE, config.launch_target)
    return LaunchCommand(LaunchAction.ACTIVATE_APP, config.name)


def render_command(
    command: LaunchCommand,
    *,
    terminal_app: str = DEFAULT_TERMINAL_APP,
    editor_app: str = DEFAULT_EDITOR_APP,
) -> list[str]:
    action = command.action
    if action == LaunchAction.ACTIVATE_APP:
        return ["open", "-a", command.target]
    if action == LaunchAction.ACTIVATE_BUNDLE:
        return ["open", "-b", command.target]
    if action == LaunchAction.ACTIVATE_BROWSER_PROFILE:
        return ["osascript", "-e", _BROWSER_PROFILE_SCRIPT, command.params.get("profile", "")]
    if action == LaunchAction.OPEN_URL:
        return ["open", command.target]
    if action == LaunchAction.OPEN_TERMINAL:
        return ["open", "-a", terminal_app, command.target]
    if action == LaunchAction.OPEN_EDITOR:
        return ["open", "-a", editor_app, command.target]
    if action == LaunchAction.QUIT_APP:
        return ["osascript", "-e", _QUIT_SCRIPT, command.target]
    raise SmuxError(f"Unsupported launch action: {action}", code=ExitCode.LAUNCH_ERROR)


class MacOSLauncher:
    def __init__(
        self,
        *,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        sleep: Callable[[float], None] = time.sleep,
        terminal_app: str = DEFAULT_TERMINAL_APP,
        editor_app: str = DEFAULT_EDITOR_APP,
        restart_delay_seconds: float = DEFAULT_RESTART_DELAY_SECONDS,
    ) -> None:
        self.runner = runner
        self.sleep = sleep
        self.terminal_app = terminal_app
        self.editor_app = editor_app
        self.restart_delay_seconds = restart_delay_seconds

    def execute(self, command: LaunchCommand) -> None:
        argv = render_command(command, terminal_app=self.terminal_app, editor_app=self.editor_app)
        logger.debug("launch action=%s command=%s", command.action.value, command_for_log(argv))
        try:
            completed = self.runner(argv, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise SmuxError(
                f"Could not run {argv[0]} for {command.target}",
                code=ExitCode.LAUNCH_ERROR,
                hint=str(exc),
            ) from exc
        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            logger.warning(
                "launch failed action=%s target=%s returncode=%s stderr=%s",
                command.action.value,
                command.target,
                completed.returncode,
                stderr,
            )
            raise SmuxError(
                f"{command.action.value} failed for {command.target}",
                code=ExitCode.LAUNCH_ERROR,
                hint=stderr or f"exit code {completed.returncode}",
            )

    def launch_application(self, config: ApplicationConfig) -> None:
        self.execute(application_command(config))

    def open_url(self, url: str) -> None:
        self.execute(LaunchCommand(LaunchAction.OPEN_URL, url))

    def open_terminal(self, path: str) -> None:
        self.execute(LaunchCommand(LaunchAction.OPEN_TERMINAL, path))

    def open_editor_project(self, path: str) -> None:
        self.execute(LaunchCommand(LaunchAction.OPEN_EDITOR, path))

    def restart_application(self, name: str) -> None:
        self.execute(LaunchCommand(LaunchAction.QUIT_APP, name))
        self.sleep(self.restart_delay_seconds)
        self.execute(LaunchCommand(LaunchAction.ACTIVATE_APP, name))
