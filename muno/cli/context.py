from __future__ import annotations

import os
from dataclasses import dataclass

import typer

from muno.core.errors import ErrorCode
from muno.core.result import Err
from muno.core.workspace import Workspace, detect_workspace
from muno.git.capability import GitCli
from muno.output.console import ConsoleProtocol, RichConsole
from muno.output.errors import print_workspace_error, workspace_error_exit_code
from muno.services.manager import WorkspaceManager

VERBOSE_ENV_VAR = "MUNO_VERBOSE"


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    manager: WorkspaceManager
    console: ConsoleProtocol
    verbose: bool


def is_verbose() -> bool:
    return os.environ.get(VERBOSE_ENV_VAR, "") not in ("", "0")


def build_context() -> CLIContext:
    console = RichConsole()
    verbose = is_verbose()

    workspace_result = detect_workspace()
    if isinstance(workspace_result, Err):
        print_workspace_error(workspace_result.error, RichConsole(stderr=True))
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    workspace = workspace_result.value
    manager_result = WorkspaceManager.open(workspace, GitCli(), console, verbose=verbose)
    if isinstance(manager_result, Err):
        print_workspace_error(manager_result.error, RichConsole(stderr=True))
        raise typer.Exit(code=workspace_error_exit_code(manager_result.error))

    return CLIContext(
        workspace=workspace,
        manager=manager_result.value,
        console=console,
        verbose=verbose,
    )
