from __future__ import annotations

from smux.errors import ExitCode, SmuxError, user_facing_error
from smux.logging import LOG_LEVELS, configure_logging


def test_exit_codes_are_deterministic() -> None:
    assert int(ExitCode.SUCCESS) == 0
    assert int(ExitCode.INVALID_ARGS) == 2
    assert int(ExitCode.CONFIG_ERROR) == 3
    assert int(ExitCode.NOT_FOUND) == 4
    assert int(ExitCode.ALREADY_EXISTS) == 5
    assert int(ExitCode.PARSE_ERROR) == 6
    assert int(ExitCode.IO_ERROR) == 7
    assert int(ExitCode.VALIDATION_ERROR) == 8
    assert int(ExitCode.LAUNCH_ERROR) == 9
    assert int(ExitCode.RUNTIME_ERROR) == 10


def test_smux_error_string_contains_hint() -> None:
    err = SmuxError("Workspace 'x' not found", code=ExitCode.NOT_FOUND, hint="Available workspaces: y.")
    assert "Available workspaces: y." in str(err)


def test_smux_error_str_without_hint() -> None:
    assert str(SmuxError("msg")) == "msg"
    assert SmuxError("msg").code == ExitCode.RUNTIME_ERROR


def test_user_facing_error_template() -> None:
    assert user_facing_error("something went wrong") == "Error: something went wrong."
    text = user_facing_error("Workspace 'a' already exists", hint="Use --force to overwrite.")
    assert text == "Error: Workspace 'a' already exists. Next step: Use --force to overwrite."


def test_logging_levels() -> None:
    logger = configure_logging("WARN")
    assert logger.level == LOG_LEVELS["WARN"]
