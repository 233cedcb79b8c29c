"""Text rendering of trees and batch reports."""

from __future__ import annotations

from muno.core.result import Err, Ok, Result
from muno.services.executor import BatchReport, Operation, OperationResult, Outcome
from muno.tree.loader import LoadError
from muno.tree.model import WorkspaceTree
from muno.tree.node import Node

from .console import ConsoleProtocol, Style

__all__ = ["node_label", "render_report", "render_tree"]

_NOT_A_REPOSITORY = "not a repository"


def node_label(tree: WorkspaceTree, node: Node) -> str:
    """Display label: name plus state markers."""
    name = tree.settings.name if node.is_root else node.name
    if not node.is_repository:
        return f"{name}/"
    marks: list[str] = ["cloned" if tree.is_cloned(node) else "absent"]
    if tree.is_lazy(node):
        marks.append("lazy")
    if node.document_ref is not None:
        marks.append("document")
    return f"{name} ({', '.join(marks)})"


def render_tree(
    tree: WorkspaceTree,
    node: Node,
    console: ConsoleProtocol,
    *,
    depth: int | None = None,
) -> Result[None, LoadError]:
    """Print ``node`` and its descendants with box-drawing guides.

    Args:
        depth: Levels below ``node`` to show; None for all.
    """
    console.print(node_label(tree, node), Style.BOLD)
    return _render_children(tree, node, console, prefix="", remaining=depth)


def _render_children(
    tree: WorkspaceTree,
    node: Node,
    console: ConsoleProtocol,
    *,
    prefix: str,
    remaining: int | None,
) -> Result[None, LoadError]:
    if remaining is not None and remaining <= 0:
        return Ok(None)
    kids = tree.children(node)
    if isinstance(kids, Err):
        return kids

    for i, child in enumerate(kids.value):
        last = i == len(kids.value) - 1
        branch = "└── " if last else "├── "
        style = Style.DEFAULT if tree.is_cloned(child) or not child.is_repository else Style.DIM
        console.print(f"{prefix}{branch}{node_label(tree, child)}", style)

        below = _render_children(
            tree,
            child,
            console,
            prefix=prefix + ("    " if last else "│   "),
            remaining=None if remaining is None else remaining - 1,
        )
        if isinstance(below, Err):
            return below
    return Ok(None)


def _list_line(result: OperationResult) -> str:
    state = "●" if result.cloned else "○"
    suffix = " (lazy)" if result.lazy else ""
    if result.url:
        return f"{state} {result.path}{suffix}  {result.url}"
    return f"  {result.path}/"


def render_report(report: BatchReport, console: ConsoleProtocol) -> None:
    """Print one line per node in the report, then a summary.

    Skips are muted; organizational nodes ("not a repository") still get
    their line but are left out of the skipped count.
    """
    if report.operation is Operation.LIST:
        for result in report.results:
            console.print(_list_line(result), Style.DEFAULT if result.cloned else Style.DIM)
        return

    for result in report.results:
        match result.outcome:
            case Outcome.FAILED:
                console.error(f"{result.path}: {result.detail or 'failed'}")
            case Outcome.SKIPPED:
                console.print(f"skip  {result.path}  {result.detail or ''}".rstrip(), Style.DIM)
            case Outcome.SUCCESS:
                style = Style.WARNING if result.dirty else Style.DEFAULT
                line = f"ok    {result.path}"
                if result.detail:
                    line += f"  {result.detail}"
                console.print(line, style)

    repos_skipped = [r for r in report.skipped if r.detail != _NOT_A_REPOSITORY]
    summary = (
        f"{report.operation}: {len(report.succeeded)} ok, "
        f"{len(repos_skipped)} skipped, {len(report.failed)} failed"
    )
    if report.ok:
        console.print(summary, Style.BOLD)
    else:
        console.print(summary, Style.ERROR)
