"""Bulk git commands over a subtree."""

from __future__ import annotations

import typer

from muno.cli.commands._helpers import finish_report
from muno.cli.context import build_context


def status(
    target: str | None = typer.Argument(None, help="Node path (default: current node)"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Show status recursively"),
) -> None:
    """Show branch and working tree state of cloned repositories."""
    ctx = build_context()
    finish_report(ctx.manager.status_node(target, recursive=recursive), ctx)


def clone(
    target: str | None = typer.Argument(None, help="Node path (default: current node)"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Clone recursively in subtree"),
    include_lazy: bool = typer.Option(False, "--include-lazy", help="Also clone lazy repositories"),
    parallel: int | None = typer.Option(
        None, "--parallel", help="Max parallel clones (0 runs one at a time)", min=0
    ),
) -> None:
    """Clone repositories that are not on disk yet."""
    ctx = build_context()
    finish_report(
        ctx.manager.clone_repos(
            target, recursive=recursive, include_lazy=include_lazy, max_parallel=parallel
        ),
        ctx,
    )


def pull(
    target: str | None = typer.Argument(None, help="Node path (default: current node)"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Pull recursively in subtree"),
    force: bool = typer.Option(False, "--force", "-f", help="Force pull, overriding local changes"),
    all_repos: bool = typer.Option(
        False, "--all", "-a", help="Pull all cloned repositories in workspace"
    ),
    include_lazy: bool = typer.Option(
        False, "--include-lazy", help="Also pull cloned lazy repositories (never clones)"
    ),
    parallel: int | None = typer.Option(
        None, "--parallel", help="Max parallel pulls (0 runs one at a time)", min=0
    ),
) -> None:
    """Update cloned repositories from their upstream."""
    ctx = build_context()
    if all_repos:
        target, recursive = "/", True
    finish_report(
        ctx.manager.pull_node_with_options(
            target,
            recursive=recursive,
            force=force,
            include_lazy=include_lazy,
            max_parallel=parallel,
        ),
        ctx,
    )


def commit(
    target: str | None = typer.Argument(None, help="Node path (default: current node)"),
    message: str = typer.Option(..., "--message", "-m", help="Commit message"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Commit recursively in subtree"),
) -> None:
    """Stage and commit all changes."""
    ctx = build_context()
    finish_report(ctx.manager.commit_node(target, message, recursive=recursive), ctx)


def push(
    target: str | None = typer.Argument(None, help="Node path (default: current node)"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Push recursively in subtree"),
) -> None:
    """Push committed changes upstream."""
    ctx = build_context()
    finish_report(ctx.manager.push_node(target, recursive=recursive), ctx)
