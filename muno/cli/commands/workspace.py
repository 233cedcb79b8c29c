from __future__ import annotations

from pathlib import Path

import typer

from muno.cli.commands._helpers import exit_with_code, unwrap_or_exit
from muno.cli.context import build_context, is_verbose
from muno.core.errors import ErrorCode
from muno.core.result import Err
from muno.git.capability import GitCli
from muno.output.console import RichConsole, Style
from muno.output.errors import print_workspace_error, workspace_error_exit_code
from muno.output.render import render_report
from muno.services.manager import WorkspaceManager


def init(
    name: str | None = typer.Argument(None, help="Workspace name (default: directory name)"),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Directory to initialize"),
    no_clone: bool = typer.Option(False, "--no-clone", help="Do not clone eager repositories"),
) -> None:
    """Create muno.yaml, the repos directory and .muno/ state."""
    console = RichConsole()
    try:
        root = path.expanduser().resolve()
    except OSError as e:
        console.error(f"invalid path: {e}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR)) from e

    result = WorkspaceManager.init_workspace(
        root,
        GitCli(),
        console,
        name=name,
        clone_eager=not no_clone,
        verbose=is_verbose(),
    )
    if isinstance(result, Err):
        print_workspace_error(result.error, console)
        raise typer.Exit(code=workspace_error_exit_code(result.error))

    manager, report = result.value
    if report is not None and report.results:
        render_report(report, console)
        if not report.ok:
            exit_with_code(int(report.exit_code))
    console.success(f"workspace ready: {manager.workspace.root}")


def use(
    target: str = typer.Argument(..., help="Node path (absolute, relative, .., /, ~)"),
) -> None:
    """Move to a node: clone it if needed and remember it as the current position."""
    ctx = build_context()
    location = unwrap_or_exit(ctx.manager.use_node(target), ctx)
    ctx.console.success(f"now at {location.virtual}")
    ctx.console.print(str(location.physical), Style.DIM)


def current() -> None:
    """Show the current node (from the working directory, then the saved position)."""
    ctx = build_context()
    location = ctx.manager.current_position()
    ctx.console.print(location.virtual, Style.BOLD)
    ctx.console.print(str(location.physical), Style.DIM)


def clear() -> None:
    """Forget the saved position."""
    ctx = build_context()
    unwrap_or_exit(ctx.manager.clear_position(), ctx)
    ctx.console.success("position cleared")


def path(
    target: str | None = typer.Argument(None, help="Node path (default: current node)"),
    ensure: bool = typer.Option(False, "--ensure", help="Clone lazy repositories if needed"),
    relative: bool = typer.Option(
        False, "--relative", help="Show position in tree instead of filesystem path"
    ),
    of: Path | None = typer.Option(None, "--of", help="Show the tree position of a directory"),
) -> None:
    """Print the filesystem path of a node (plain output, for shell use)."""
    ctx = build_context()
    manager = ctx.manager

    if of is not None:
        typer.echo(unwrap_or_exit(manager.tree_path(of), ctx))
        return

    if relative:
        node = unwrap_or_exit(manager.resolver.resolve_node(target), ctx)
        typer.echo(manager.tree.path_of(node))
        return

    typer.echo(str(unwrap_or_exit(manager.resolve_path(target, ensure=ensure), ctx)))
