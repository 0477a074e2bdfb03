"""Workspace creation, update and switch orchestration."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import partial

from smux.errors import ExitCode, SmuxError
from smux.launcher import Launcher
from smux.mcp_merge import MCPConfigMerger, MergeOutcome, MergeStatus
from smux.models import (
    ApplicationConfig,
    MCPServerConfig,
    Workspace,
    parse_mcp_servers_text,
    validate_workspace_name,
)
from smux.paths import expand_user_str
from smux.progress import StepEvent, SwitchProgress
from smux.prompts import Prompter
from smux.store import WorkspaceStore

logger = py_logging.getLogger(__name__)

SnapshotHook = Callable[[Workspace], None]

MCP_PROMPT_EXAMPLE = '{"karbon":{"command":"node","args":["/path/to/server.js"]}}'


class SwitchStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class CreateResult:
    workspace: Workspace
    skipped_mcp_servers: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class UpdateResult:
    workspace: Workspace
    changed_fields: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changed_fields)


@dataclass
class SwitchResult:
    name: str
    status: SwitchStatus
    events: list[StepEvent] = field(default_factory=list)
    merge_outcomes: list[MergeOutcome] = field(default_factory=list)
    restarted: list[str] = field(default_factory=list)
    restart_required: list[str] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return self.status == SwitchStatus.CANCELLED

    @property
    def failed_steps(self) -> list[StepEvent]:
        return [event for event in self.events if event.state == "error"]


def split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class WorkspaceManager:
    """Coordinates the store, launcher, MCP merger and prompts.

    Holds no workspace state of its own; every lookup re-reads the store.
    """

    def __init__(
        self,
        store: WorkspaceStore,
        launcher: Launcher,
        merger: MCPConfigMerger,
        prompter: Prompter,
        *,
        snapshot: SnapshotHook | None = None,
    ) -> None:
        self.store = store
        self.launcher = launcher
        self.merger = merger
        self.prompter = prompter
        self.snapshot = snapshot

    def list_workspaces(self) -> list[str]:
        return self.store.list_names()

    def get_workspace(self, name: str) -> Workspace:
        return self.store.load(name)

    def delete_workspace(self, name: str) -> None:
        self.store.delete(name)
        logger.info("Deleted workspace name=%s", name)

    def create_workspace(
        self,
        name: str,
        *,
        template: str | None = None,
        vscode_workspace: str | None = None,
        browser_urls: list[str] | None = None,
        terminal_directories: list[str] | None = None,
        applications: list[ApplicationConfig] | None = None,
        mcp_servers: Mapping[str, MCPServerConfig] | None = None,
        interactive: bool = False,
        force: bool = False,
    ) -> CreateResult:
        validate_workspace_name(name)
        if self.store.exists(name) and not force:
            raise SmuxError(
                f"Workspace '{name}' already exists",
                code=ExitCode.ALREADY_EXISTS,
                hint="Use --force to overwrite.",
            )

        if template is not None:
            source = self.store.load(template)
            workspace = source.clone(name)
            self.store.save(workspace)
            logger.info("Created workspace name=%s from template=%s", name, template)
            return CreateResult(workspace=workspace)

        if interactive:
            result = self._collect_interactive(name)
            self.store.save(result.workspace)
            logger.info("Created workspace name=%s interactively", name)
            return result

        workspace = Workspace(
            name=name,
            applications=list(applications or []),
            browser_urls=list(browser_urls or []),
            terminal_directories=list(terminal_directories or []),
            vscode_workspace=vscode_workspace,
            mcp_servers=dict(mcp_servers) if mcp_servers is not None else None,
        )
        self.store.save(workspace)
        logger.info("Created workspace name=%s", name)
        return CreateResult(workspace=workspace)

    def _collect_interactive(self, name: str) -> CreateResult:
        ask = self.prompter.ask
        vscode_workspace = ask("VSCode workspace file path:") or None
        browser_urls = split_csv(ask("Browser URLs (comma-separated):"))
        terminal_directories = split_csv(ask("Terminal directories (comma-separated):"))
        applications = [
            ApplicationConfig(name=app_name)
            for app_name in split_csv(ask("Applications to include (comma-separated, e.g., 'Safari,Mail'):"))
        ]
        mcp_text = ask(f"MCP server configurations (JSON format, e.g., '{MCP_PROMPT_EXAMPLE}'):")

        mcp_servers: dict[str, MCPServerConfig] | None = None
        skipped: list[str] = []
        warnings: list[str] = []
        if mcp_text:
            try:
                parsed = parse_mcp_servers_text(mcp_text)
            except SmuxError as exc:
                logger.warning("Ignoring interactive MCP input: %s", exc)
                warnings.append("Invalid MCP server configuration format. Skipping.")
            else:
                mcp_servers = parsed.servers
                skipped = parsed.skipped
                if skipped:
                    logger.warning("Dropped malformed MCP servers: %s", ", ".join(skipped))

        workspace = Workspace(
            name=name,
            applications=applications,
            browser_urls=browser_urls,
            terminal_directories=terminal_directories,
            vscode_workspace=vscode_workspace,
            mcp_servers=mcp_servers,
        )
        return CreateResult(workspace=workspace, skipped_mcp_servers=skipped, warnings=warnings)

    def update_workspace(
        self,
        name: str,
        *,
        vscode_workspace: str | None = None,
        browser_urls: list[str] | None = None,
        terminal_directories: list[str] | None = None,
        mcp_servers: Mapping[str, MCPServerConfig] | None = None,
    ) -> UpdateResult:
        workspace = self.store.load(name)
        changed: list[str] = []

        if vscode_workspace is not None:
            workspace.vscode_workspace = vscode_workspace
            changed.append("vscodeWorkspace")
        if browser_urls is not None:
            workspace.browser_urls = list(browser_urls)
            changed.append("browserUrls")
        if terminal_directories is not None:
            workspace.terminal_directories = list(terminal_directories)
            changed.append("terminalDirectories")
        if mcp_servers is not None:
            workspace.mcp_servers = dict(mcp_servers)
            changed.append("mcpServers")

        if not changed:
            logger.debug("No changes requested for workspace name=%s", name)
            return UpdateResult(workspace=workspace)

        self.store.save(workspace)
        logger.info("Updated workspace name=%s fields=%s", name, ",".join(changed))
        return UpdateResult(workspace=workspace, changed_fields=changed)

    def switch_workspace(
        self,
        name: str,
        *,
        save_current_state: bool = False,
        force: bool = False,
    ) -> SwitchResult:
        workspace = self.store.load(name)

        if not force and not self.prompter.confirm(
            f"Are you sure you want to switch to workspace '{name}'?"
        ):
            logger.info("Switch cancelled by user name=%s", name)
            return SwitchResult(name=name, status=SwitchStatus.CANCELLED)

        progress = SwitchProgress()
        logger.info("Switching to workspace name=%s", name)

        if save_current_state:
            if self.snapshot is None:
                progress.record_skipped("snapshot", "Snapshot capture is not available")
            else:
                self._run_step(progress, "snapshot", name, partial(self.snapshot, workspace))

        for app in workspace.applications:
            self._run_step(progress, "application", app.name, partial(self.launcher.launch_application, app))
        for url in workspace.browser_urls:
            self._run_step(progress, "browser-url", url, partial(self.launcher.open_url, url))
        for directory in workspace.terminal_directories:
            path = expand_user_str(directory)
            self._run_step(progress, "terminal", path, partial(self.launcher.open_terminal, path))
        if workspace.vscode_workspace:
            path = expand_user_str(workspace.vscode_workspace)
            self._run_step(progress, "editor", path, partial(self.launcher.open_editor_project, path))

        result = SwitchResult(name=name, status=SwitchStatus.COMPLETED)
        if workspace.mcp_servers:
            result.merge_outcomes = self._merge_mcp(progress, workspace.mcp_servers)
            updated_apps = _dedupe([item.target.app_name for item in result.merge_outcomes if item.updated])
            if updated_apps:
                self._prompt_restart(progress, updated_apps, result)

        result.events = list(progress.events)
        if result.failed_steps:
            logger.warning(
                "Switch to workspace name=%s completed with %s failed steps",
                name,
                len(result.failed_steps),
            )
        return result

    def _merge_mcp(
        self,
        progress: SwitchProgress,
        servers: Mapping[str, MCPServerConfig],
    ) -> list[MergeOutcome]:
        progress.record_started("mcp-merge", f"Merging {len(servers)} MCP servers")
        try:
            outcomes = self.merger.merge(servers)
        except Exception as exc:
            logger.error("MCP merge failed: %s", exc, exc_info=logger.isEnabledFor(py_logging.DEBUG))
            progress.record_error("mcp-merge", str(exc))
            return []
        for outcome in outcomes:
            if outcome.status == MergeStatus.UPDATED:
                progress.record_success("mcp-merge", outcome.message)
            elif outcome.status == MergeStatus.NOT_INSTALLED:
                progress.record_skipped("mcp-merge", outcome.message)
            else:
                progress.record_error("mcp-merge", outcome.message)
        return outcomes

    def _prompt_restart(self, progress: SwitchProgress, apps: list[str], result: SwitchResult) -> None:
        if not self.prompter.confirm(f"Restart {', '.join(apps)} now to apply MCP server changes?"):
            for app in apps:
                progress.record_skipped("restart", f"Restart {app} manually to apply MCP server changes")
            result.restart_required = list(apps)
            return
        for app in apps:
            if self._run_step(progress, "restart", app, partial(self.launcher.restart_application, app)):
                result.restarted.append(app)
            else:
                result.restart_required.append(app)

    def _run_step(
        self,
        progress: SwitchProgress,
        step: str,
        label: str,
        action: Callable[[], None],
    ) -> bool:
        progress.record_started(step, label)
        try:
            action()
        except Exception as exc:
            logger.warning(
                "Switch step failed step=%s target=%s error=%s",
                step,
                label,
                exc,
                exc_info=logger.isEnabledFor(py_logging.DEBUG),
            )
            progress.record_error(step, f"{label}: {exc}")
            return False
        progress.record_success(step, label)
        return True


def _dedupe(values: list[str]) -> list[str]:
    result: list[str] = []
    seen: set[str] = set()
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
