from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def _env(tmp_path: Path) -> dict[str, str]:
    env = dict(os.environ)
    existing = env.get("PYTHONPATH", "")
    src_path = str(Path("src").resolve())
    env["PYTHONPATH"] = f"{src_path}{os.pathsep}{existing}" if existing else src_path
    env["SMUX_HOME"] = str(tmp_path / "workspaces")
    return env


def _smux(tmp_path: Path, *args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [
            sys.executable,
            "-m",
            "smux",
            "--log-file",
            str(tmp_path / "smux.log"),
            "--config",
            str(tmp_path / "config.toml"),
            *args,
        ],
        capture_output=True,
        text=True,
        check=False,
        env=_env(tmp_path),
        stdin=subprocess.DEVNULL,
    )


def test_cli_module_reports_invalid_args_via_exit_code(tmp_path: Path) -> None:
    completed = _smux(tmp_path, "--log-level", "LOUD", "list")

    assert completed.returncode == 2
    assert "--log-level must be one of" in completed.stderr


def test_cli_module_create_list_and_config(tmp_path: Path) -> None:
    created = _smux(tmp_path, "create", "demo", "--browser-urls", "https://a.test")
    assert created.returncode == 0
    assert (tmp_path / "workspaces" / "demo.json").exists()

    listed = _smux(tmp_path, "list")
    assert listed.returncode == 0
    assert " - demo" in listed.stdout

    duplicate = _smux(tmp_path, "create", "demo")
    assert duplicate.returncode == 5

    unchanged = _smux(tmp_path, "config", "demo")
    assert unchanged.returncode == 0
    assert "No changes to save." in unchanged.stdout


def test_cli_module_switch_without_confirmation_input_cancels(tmp_path: Path) -> None:
    _smux(tmp_path, "create", "demo", "--browser-urls", "https://a.test")

    completed = _smux(tmp_path, "switch", "demo")

    assert completed.returncode == 0
    assert "Switch canceled." in completed.stdout


def test_cli_module_switch_unknown_workspace_fails(tmp_path: Path) -> None:
    completed = _smux(tmp_path, "switch", "ghost", "--force")

    assert completed.returncode == 4
    assert "Workspace 'ghost' not found" in completed.stderr
