"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from .config import AppConfig, load_config
from .errors import ExitCode, SmuxError, user_facing_error
from .launcher import MacOSLauncher
from .logging import configure_logging, default_log_path
from .manager import SwitchResult, WorkspaceManager, split_csv
from .mcp_merge import MCPConfigMerger
from .models import MCPServerConfig, Workspace, load_mcp_servers_file
from .prompts import ConsolePrompter, Prompter
from .store import WorkspaceStore

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

ManagerFactory = Callable[[AppConfig, Prompter], WorkspaceManager]


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def _add_field_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--vscode-workspace", default=None, help="VSCode workspace file path")
    parser.add_argument("--browser-urls", default=None, help="Comma-separated list of URLs to open")
    parser.add_argument(
        "--terminal-dirs",
        default=None,
        help="Comma-separated list of terminal working directories",
    )
    parser.add_argument(
        "--mcp-config",
        type=Path,
        default=None,
        help="JSON file containing MCP server configurations",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="smux", description="A workspace multiplexer for macOS")
    parser.add_argument("--log-level", type=_log_level_type, default="WARN")
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a new workspace")
    create.add_argument("name", help="Name of the workspace to create")
    create.add_argument("--template", default=None, help="Use an existing workspace as a template")
    _add_field_options(create)
    create.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Enable interactive mode for configuration",
    )
    create.add_argument("-f", "--force", action="store_true", help="Overwrite an existing workspace")

    switch = subparsers.add_parser("switch", help="Switch to a workspace")
    switch.add_argument("name", help="Name of the workspace to switch to")
    switch.add_argument("-s", "--save", action="store_true", help="Save current state before switching")
    switch.add_argument("-f", "--force", action="store_true", help="Skip confirmation prompt")
    switch.add_argument("-v", "--verbose", action="store_true", help="Show progress during switching")

    subparsers.add_parser("list", aliases=["ls"], help="List all available workspaces")

    config = subparsers.add_parser("config", help="Configure a workspace")
    config.add_argument("name", help="Name of the workspace to configure")
    _add_field_options(config)

    delete = subparsers.add_parser("delete", help="Delete a workspace")
    delete.add_argument("name", help="Name of the workspace to delete")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def build_manager(config: AppConfig, prompter: Prompter) -> WorkspaceManager:
    launcher = MacOSLauncher(
        terminal_app=config.terminal_app,
        editor_app=config.editor_app,
        restart_delay_seconds=config.restart_delay_seconds,
    )
    return WorkspaceManager(
        store=WorkspaceStore(config.storage_path),
        launcher=launcher,
        merger=MCPConfigMerger(config.resolved_mcp_targets()),
        prompter=prompter,
    )


def print_workspace_summary(workspace: Workspace) -> None:
    print("\nWorkspace Configuration:")
    print(f"  Name: {workspace.name}")
    if workspace.vscode_workspace:
        print(f"  VSCode Workspace: {workspace.vscode_workspace}")
    if workspace.browser_urls:
        print("  Browser URLs:")
        for url in workspace.browser_urls:
            print(f"    - {url}")
    if workspace.terminal_directories:
        print("  Terminal Directories:")
        for directory in workspace.terminal_directories:
            print(f"    - {directory}")
    if workspace.applications:
        print("  Applications:")
        for app in workspace.applications:
            print(f"    - {app.name}")
    if workspace.mcp_servers:
        print("  MCP Servers:")
        for server_name in workspace.mcp_servers:
            print(f"    - {server_name}")


def _load_mcp_option(path: Path | None) -> dict[str, MCPServerConfig] | None:
    if path is None:
        return None
    parsed = load_mcp_servers_file(path)
    for server_name in parsed.skipped:
        print(f"Skipping MCP server '{server_name}': 'command' and 'args' are required.", file=sys.stderr)
    return parsed.servers


def _csv_option(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return split_csv(value)


def run_create(namespace: argparse.Namespace, manager: WorkspaceManager) -> int:
    name = namespace.name
    if namespace.template is not None:
        print(f"Creating workspace '{name}' from template '{namespace.template}'...")
        result = manager.create_workspace(name, template=namespace.template, force=namespace.force)
        print(f"Successfully created workspace '{name}' from template '{namespace.template}'")
    elif namespace.interactive:
        print(f"Creating workspace '{name}' in interactive mode...")
        print("Press Enter to skip any option.")
        result = manager.create_workspace(name, interactive=True, force=namespace.force)
        for warning in result.warnings:
            print(warning)
        for server_name in result.skipped_mcp_servers:
            print(f"Skipping MCP server '{server_name}': 'command' and 'args' are required.")
        print(f"\nSuccessfully created workspace '{name}'")
    else:
        result = manager.create_workspace(
            name,
            vscode_workspace=namespace.vscode_workspace,
            browser_urls=_csv_option(namespace.browser_urls),
            terminal_directories=_csv_option(namespace.terminal_dirs),
            mcp_servers=_load_mcp_option(namespace.mcp_config),
            force=namespace.force,
        )
        print(f"Successfully created workspace '{name}'")
    print_workspace_summary(result.workspace)
    return int(ExitCode.SUCCESS)


def _report_switch(result: SwitchResult, *, verbose: bool) -> None:
    if verbose:
        for event in result.events:
            print(f"[{event.step}] {event.state}: {event.message}")
    else:
        for event in result.failed_steps:
            print(f"Warning: {event.step} failed: {event.message}", file=sys.stderr)
    for outcome in result.merge_outcomes:
        if not outcome.updated:
            print(f"MCP config for {outcome.target.app_name} not updated: {outcome.message}")
    for app in result.restart_required:
        print(f"Please restart {app} manually to apply MCP server changes.")


def run_switch(namespace: argparse.Namespace, manager: WorkspaceManager) -> int:
    name = namespace.name
    if namespace.verbose:
        print(f"Starting workspace switch to '{name}'...")
    result = manager.switch_workspace(name, save_current_state=namespace.save, force=namespace.force)
    if result.cancelled:
        print("Switch canceled.")
        return int(ExitCode.SUCCESS)
    _report_switch(result, verbose=namespace.verbose)
    if result.failed_steps:
        print(f"Switched to workspace '{name}' with {len(result.failed_steps)} failed steps")
    elif namespace.verbose:
        print(f"Successfully switched to workspace '{name}'")
    return int(ExitCode.SUCCESS)


def run_list(manager: WorkspaceManager) -> int:
    names = manager.list_workspaces()
    if not names:
        print("No workspaces found.")
        return int(ExitCode.SUCCESS)
    print("Available workspaces:")
    for name in names:
        print(f" - {name}")
    return int(ExitCode.SUCCESS)


def run_config(namespace: argparse.Namespace, manager: WorkspaceManager) -> int:
    name = namespace.name
    print(f"Configuring workspace: {name}")
    result = manager.update_workspace(
        name,
        vscode_workspace=namespace.vscode_workspace,
        browser_urls=_csv_option(namespace.browser_urls),
        terminal_directories=_csv_option(namespace.terminal_dirs),
        mcp_servers=_load_mcp_option(namespace.mcp_config),
    )
    if result.changed:
        print(f"Successfully updated workspace '{name}'")
    else:
        print("No changes to save.")
    return int(ExitCode.SUCCESS)


def run_delete(namespace: argparse.Namespace, manager: WorkspaceManager) -> int:
    manager.delete_workspace(namespace.name)
    print(f"Deleted workspace '{namespace.name}'")
    return int(ExitCode.SUCCESS)


def run_cli_flow(namespace: argparse.Namespace, manager: WorkspaceManager) -> int:
    command = namespace.command
    if command == "create":
        return run_create(namespace, manager)
    if command == "switch":
        return run_switch(namespace, manager)
    if command in ("list", "ls"):
        return run_list(manager)
    if command == "config":
        return run_config(namespace, manager)
    if command == "delete":
        return run_delete(namespace, manager)
    raise SmuxError(f"Unknown command: {command}", code=ExitCode.INVALID_ARGS)


def main(
    argv: Sequence[str] | None = None,
    *,
    manager_factory: ManagerFactory | None = None,
    prompter: Prompter | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(level="WARN", log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    logger = configure_logging(level=namespace.log_level, log_file=log_path)

    try:
        config = load_config(namespace.config)
        factory = manager_factory or build_manager
        manager = factory(config, prompter or ConsolePrompter())
        logger.debug("Running command=%s", namespace.command)
        return run_cli_flow(namespace, manager)
    except SmuxError as exc:
        logger.error(
            "Handled SmuxError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        try:
            hint = f"Inspect logs: {log_path}"
            print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        except Exception:
            pass
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
