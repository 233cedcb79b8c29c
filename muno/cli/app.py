"""The ``muno`` command line: one typer app, commands grouped by concern."""

from __future__ import annotations

import os
from pathlib import Path

import typer

from muno import __version__
from muno.cli.commands.git_ops import clone, commit, pull, push, status
from muno.cli.commands.nodes import add, list_nodes, remove, tree
from muno.cli.commands.workspace import clear, current, init, path, use
from muno.cli.context import VERBOSE_ENV_VAR
from muno.core.errors import ErrorCode
from muno.core.workspace import WORKSPACE_ENV_VAR, is_workspace_root


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Navigate and operate a tree of git repositories.",
)

for command in (init, use, current, clear, path, tree, add, remove, status, clone, pull, commit, push):
    app.command()(command)
app.command("list")(list_nodes)


def _fail(message: str, code: ErrorCode) -> typer.Exit:
    typer.echo(f"error: {message}", err=True)
    return typer.Exit(code=int(code))


def _pin_workspace(workspace: Path) -> None:
    """Make ``workspace`` the root every command uses, via the environment."""
    try:
        root = workspace.expanduser().resolve()
    except OSError as e:
        raise _fail(f"cannot resolve --workspace {workspace}: {e}", ErrorCode.USER_ERROR)

    if not (root.is_dir() and is_workspace_root(root)):
        raise _fail(f"no muno.yaml in --workspace {root}", ErrorCode.CONFIG_ERROR)
    os.environ[WORKSPACE_ENV_VAR] = str(root)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Print the version and exit."),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        help="Workspace root; skips upward detection from the current directory.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detail lines."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)
    if verbose:
        os.environ[VERBOSE_ENV_VAR] = "1"
    if workspace is not None:
        _pin_workspace(workspace)


def main() -> None:
    app()
