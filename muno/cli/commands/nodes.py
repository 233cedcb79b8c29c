"""Tree inspection and editing commands."""

from __future__ import annotations

import typer

from muno.cli.commands._helpers import finish_report, unwrap_or_exit
from muno.cli.context import build_context
from muno.tree.fetch_mode import FetchMode


def list_nodes(
    target: str | None = typer.Argument(None, help="Node path (default: current node)"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="List recursively"),
) -> None:
    """List a node and its children (● cloned, ○ absent)."""
    ctx = build_context()
    finish_report(ctx.manager.list_nodes(target, recursive=recursive), ctx)


def tree(
    target: str | None = typer.Argument(None, help="Node path (default: current node)"),
    depth: int = typer.Option(0, "--depth", "-d", help="Maximum depth to display (0 for unlimited)"),
) -> None:
    """Display the workspace tree."""
    ctx = build_context()
    unwrap_or_exit(ctx.manager.show_tree_at_path(target, depth=depth or None), ctx)


def add(
    url: str = typer.Argument(..., help="Repository URL"),
    name: str | None = typer.Option(None, "--name", "-n", help="Custom name for the repository"),
    lazy: bool = typer.Option(False, "--lazy", "-l", help="Don't clone until needed"),
    eager: bool = typer.Option(False, "--eager", help="Clone now even if the name looks ordinary"),
    parent: str | None = typer.Option(None, "--parent", help="Parent node (default: current node)"),
) -> None:
    """Add a repository under a node and save the document that declares it."""
    ctx = build_context()
    if lazy and eager:
        ctx.console.error("--lazy and --eager are exclusive")
        raise typer.Exit(code=1)

    fetch = FetchMode.LAZY if lazy else FetchMode.EAGER if eager else None
    location = unwrap_or_exit(
        ctx.manager.add_repo_simple(url, name=name, fetch=fetch, parent=parent), ctx
    )
    ctx.console.success(f"added {location.virtual}")


def remove(
    target: str = typer.Argument(..., help="Node to remove"),
    delete: bool = typer.Option(False, "--delete", help="Also delete the working tree on disk"),
) -> None:
    """Remove a node from its document."""
    ctx = build_context()
    removed = unwrap_or_exit(ctx.manager.remove_node(target, delete_files=delete), ctx)
    ctx.console.success(f"removed {removed}")
