from __future__ import annotations

from pathlib import Path

import pytest

from smux.mcp_merge import MCPConfigMerger, MCPTarget
from smux.models import ApplicationConfig, MCPServerConfig
from smux.manager import WorkspaceManager
from smux.store import WorkspaceStore

_CRITICAL_TEST_FILES = {
    "test_manager_switch.py",
    "test_mcp_merge.py",
    "test_store.py",
}


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))

        if "integration" in path.parts:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if path.name in _CRITICAL_TEST_FILES:
            item.add_marker(pytest.mark.critical_regression)


class SpyLauncher:
    """Records launch calls; raises for targets listed in ``failing``."""

    def __init__(self, *, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[tuple[str, str]] = []

    def _record(self, action: str, target: str) -> None:
        self.calls.append((action, target))
        if target in self.failing:
            raise RuntimeError(f"{action} failed for {target}")

    def launch_application(self, config: ApplicationConfig) -> None:
        self._record("launch", config.name)

    def open_url(self, url: str) -> None:
        self._record("url", url)

    def open_terminal(self, path: str) -> None:
        self._record("terminal", path)

    def open_editor_project(self, path: str) -> None:
        self._record("editor", path)

    def restart_application(self, name: str) -> None:
        self._record("restart", name)


class ScriptedPrompter:
    """Answers prompts from queues and keeps the messages it was shown."""

    def __init__(self, *, confirms: list[bool] | None = None, answers: list[str] | None = None) -> None:
        self.confirms = list(confirms or [])
        self.answers = list(answers or [])
        self.confirm_messages: list[str] = []
        self.ask_messages: list[str] = []

    def confirm(self, message: str) -> bool:
        self.confirm_messages.append(message)
        return self.confirms.pop(0) if self.confirms else False

    def ask(self, message: str) -> str:
        self.ask_messages.append(message)
        return self.answers.pop(0) if self.answers else ""


class SpyMerger(MCPConfigMerger):
    def __init__(self, targets: list[MCPTarget]) -> None:
        super().__init__(targets)
        self.merged: list[dict[str, MCPServerConfig]] = []

    def merge(self, servers):  # type: ignore[override]
        self.merged.append(dict(servers))
        return super().merge(servers)


@pytest.fixture
def store(tmp_path: Path) -> WorkspaceStore:
    return WorkspaceStore(tmp_path / "workspaces")


@pytest.fixture
def launcher() -> SpyLauncher:
    return SpyLauncher()


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def mcp_target(tmp_path: Path) -> MCPTarget:
    return MCPTarget(
        name="claude-desktop",
        app_name="Claude",
        config_dir=tmp_path / "Claude",
        config_file="claude_desktop_config.json",
    )


@pytest.fixture
def merger(mcp_target: MCPTarget) -> SpyMerger:
    return SpyMerger([mcp_target])


@pytest.fixture
def manager(
    store: WorkspaceStore,
    launcher: SpyLauncher,
    merger: SpyMerger,
    prompter: ScriptedPrompter,
) -> WorkspaceManager:
    return WorkspaceManager(store, launcher, merger, prompter)
