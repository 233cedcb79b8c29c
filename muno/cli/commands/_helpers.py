"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from muno.core.errors import WorkspaceError
from muno.core.result import Err, Ok, Result
from muno.output.errors import print_workspace_error, workspace_error_exit_code
from muno.output.render import render_report
from muno.services.executor import BatchReport

if TYPE_CHECKING:
    from muno.cli.context import CLIContext


def unwrap_or_exit[T](result: Result[T, WorkspaceError], ctx: CLIContext) -> T:
    """Return the value of ``result``, or print the error and exit.

    This replaces the pattern repeated in every command:
        match result:
            case Err(e):
                print_workspace_error(e, ctx.console)
                raise typer.Exit(code=workspace_error_exit_code(e))
            case Ok(value):
                ...
    """
    match result:
        case Err(error):
            print_workspace_error(error, ctx.console)
            exit_with_code(workspace_error_exit_code(error))
        case Ok(value):
            return value


def finish_report(result: Result[BatchReport, WorkspaceError], ctx: CLIContext) -> None:
    """Render a batch report; exit non-zero if any node failed."""
    report = unwrap_or_exit(result, ctx)
    render_report(report, ctx.console)
    if not report.ok:
        exit_with_code(int(report.exit_code))


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
