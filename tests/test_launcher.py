from __future__ import annotations

import subprocess

import pytest

from smux.errors import ExitCode, SmuxError
from smux.launcher import (
    LaunchAction,
    LaunchCommand,
    MacOSLauncher,
    application_command,
    command_for_log,
    render_command,
)
from smux.models import ApplicationConfig


def _cp(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class _RecordingRunner:
    def __init__(self, *, returncode: int = 0, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.commands: list[list[str]] = []

    def __call__(self, cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess:
        assert kwargs.get("check") is False
        self.commands.append(cmd)
        return _cp(self.returncode, stderr=self.stderr)


def test_application_command_prefers_bundle_identifier() -> None:
    command = application_command(ApplicationConfig(name="Mail", bundle_identifier="com.apple.mail"))
    assert command == LaunchCommand(LaunchAction.ACTIVATE_BUNDLE, "com.apple.mail")


def test_application_command_uses_name_without_bundle_identifier() -> None:
    command = application_command(ApplicationConfig(name="Mail", bundle_identifier=" "))
    assert command == LaunchCommand(LaunchAction.ACTIVATE_APP, "Mail")


def test_application_command_uses_browser_profile_for_safari() -> None:
    command = application_command(
        ApplicationConfig(name="safari", bundle_identifier="com.apple.Safari", safari_profile="Work")
    )
    assert command.action == LaunchAction.ACTIVATE_BROWSER_PROFILE
    assert command.params == {"profile": "Work"}


def test_user_values_are_passed_as_arguments_not_script_text() -> None:
    hostile = 'Work" & (do shell script "rm -rf ~") & "'
    argv = render_command(LaunchCommand(LaunchAction.ACTIVATE_BROWSER_PROFILE, "Safari", {"profile": hostile}))

    assert argv[0] == "osascript"
    assert argv[-1] == hostile
    assert hostile not in argv[2]


def test_terminal_and_editor_use_configured_apps() -> None:
    assert render_command(LaunchCommand(LaunchAction.OPEN_TERMINAL, "/srv"), terminal_app="iTerm") == [
        "open",
        "-a",
        "iTerm",
        "/srv",
    ]
    assert render_command(LaunchCommand(LaunchAction.OPEN_EDITOR, "/p.code-workspace")) == [
        "open",
        "-a",
        "Visual Studio Code",
        "/p.code-workspace",
    ]


def test_launcher_runs_rendered_commands() -> None:
    runner = _RecordingRunner()
    launcher = MacOSLauncher(runner=runner)

    launcher.open_url("https://a.test")
    launcher.launch_application(ApplicationConfig(name="Notes"))

    assert runner.commands == [["open", "https://a.test"], ["open", "-a", "Notes"]]


def test_launcher_raises_launch_error_on_nonzero_exit() -> None:
    launcher = MacOSLauncher(runner=_RecordingRunner(returncode=1, stderr="Unable to find application"))

    with pytest.raises(SmuxError) as exc:
        launcher.launch_application(ApplicationConfig(name="Nope"))

    assert exc.value.code == ExitCode.LAUNCH_ERROR
    assert "Unable to find application" in exc.value.hint


def test_launcher_wraps_missing_binary() -> None:
    def runner(cmd: list[str], **_: object) -> subprocess.CompletedProcess:
        raise FileNotFoundError("open")

    with pytest.raises(SmuxError) as exc:
        MacOSLauncher(runner=runner).open_url("https://a.test")
    assert exc.value.code == ExitCode.LAUNCH_ERROR


def test_restart_quits_waits_and_relaunches() -> None:
    runner = _RecordingRunner()
    sleeps: list[float] = []
    launcher = MacOSLauncher(runner=runner, sleep=sleeps.append, restart_delay_seconds=1.5)

    launcher.restart_application("Claude")

    assert runner.commands[0][0] == "osascript"
    assert runner.commands[0][-1] == "Claude"
    assert runner.commands[1] == ["open", "-a", "Claude"]
    assert sleeps == [1.5]


def test_command_for_log_quotes_and_truncates() -> None:
    assert command_for_log(["open", "-a", "Visual Studio Code"]) == "open -a 'Visual Studio Code'"
    assert command_for_log([]) == ""
    assert command_for_log(["x" * 400]).endswith("...")
