"""Bulk git operations over a subtree.

The executor walks a subtree in pre-order and applies one operation to every
node, collecting one result per node. A failing node never stops the walk;
the report carries every outcome and the batch fails if any node failed.

Clone and pull run their git work on a thread pool. Clone proceeds in waves:
a node's children are only looked at once the node itself has been cloned,
since a freshly cloned repository may bring its own document with more nodes.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import StrEnum

from muno.core.errors import ErrorCode, GitOperationError, MaterializationError
from muno.core.result import Err, Ok, Result
from muno.git.capability import GitCapability
from muno.output.console import ConsoleProtocol, Style
from muno.tree.loader import LoadError
from muno.tree.model import WorkspaceTree
from muno.tree.node import Node

from .materializer import LazyMaterializer

__all__ = [
    "BatchReport",
    "Operation",
    "OperationExecutor",
    "OperationResult",
    "Outcome",
]


class Operation(StrEnum):
    CLONE = "clone"
    PULL = "pull"
    COMMIT = "commit"
    PUSH = "push"
    STATUS = "status"
    LIST = "list"


class Outcome(StrEnum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of one operation on one node.

    Attributes:
        path: Virtual path of the node.
        outcome: success, skipped or failed.
        detail: Skip reason, error message or git output summary.
        error: The per-node error when failed.
        url: Repository URL (None for organizational nodes).
        cloned: Whether the node is on disk after the operation.
        lazy: Whether the node is lazy.
        branch: Current branch (status only).
        dirty: Uncommitted changes present (status only).
    """

    path: str
    outcome: Outcome
    detail: str | None = None
    error: MaterializationError | GitOperationError | None = None
    url: str | None = None
    cloned: bool = False
    lazy: bool = False
    branch: str | None = None
    dirty: bool | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILED


@dataclass(frozen=True, slots=True)
class BatchReport:
    """Results of one operation over a subtree, in pre-order."""

    operation: Operation
    results: tuple[OperationResult, ...]

    @property
    def failed(self) -> tuple[OperationResult, ...]:
        return tuple(r for r in self.results if r.outcome is Outcome.FAILED)

    @property
    def succeeded(self) -> tuple[OperationResult, ...]:
        return tuple(r for r in self.results if r.outcome is Outcome.SUCCESS)

    @property
    def skipped(self) -> tuple[OperationResult, ...]:
        return tuple(r for r in self.results if r.outcome is Outcome.SKIPPED)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> ErrorCode:
        return ErrorCode.OK if self.ok else ErrorCode.GIT_ERROR


class OperationExecutor:
    """Applies git operations to nodes of a tree."""

    def __init__(
        self,
        tree: WorkspaceTree,
        materializer: LazyMaterializer,
        git: GitCapability,
        console: ConsoleProtocol,
        *,
        verbose: bool = False,
    ) -> None:
        self._tree = tree
        self._materializer = materializer
        self._git = git
        self._console = console
        self._verbose = verbose

    def apply(
        self,
        start: Node,
        operation: Operation,
        *,
        recursive: bool = True,
        include_lazy: bool = False,
        max_parallel: int | None = None,
        force: bool = False,
        message: str | None = None,
    ) -> Result[BatchReport, LoadError]:
        """Run ``operation`` on ``start`` and the nodes below it.

        Args:
            start: First node; an explicitly targeted lazy node is cloned or
                pulled even without ``include_lazy``.
            operation: What to do on each node.
            recursive: Whole subtree, or ``start`` and its direct children.
            include_lazy: Clone lazy repositories too (clone), or pull cloned lazy
                repositories too (pull).
            max_parallel: Worker threads for clone/pull; 0 runs sequentially,
                None uses the workspace default.
            force: Discard local divergence on pull.
            message: Commit message (commit only).

        Returns:
            Ok(BatchReport) once every node has an outcome, or Err if a
            document below ``start`` cannot be loaded.
        """
        if operation is Operation.COMMIT and not message:
            raise ValueError("commit requires a message")

        workers = self._tree.settings.max_parallel if max_parallel is None else max_parallel

        if operation is Operation.CLONE:
            return self._clone(start, recursive, include_lazy, workers)

        scope = self._tree.walk(start, recursive)
        if isinstance(scope, Err):
            return scope
        nodes = scope.value

        slots: list[OperationResult | None] = [
            self._precheck(node, operation, node is start, include_lazy) for node in nodes
        ]
        todo = [i for i, slot in enumerate(slots) if slot is None]

        def work(node: Node) -> OperationResult:
            return self._perform(node, operation, force=force, message=message)

        done = self._run(
            [nodes[i] for i in todo],
            work,
            workers if operation is Operation.PULL else 0,
        )
        for i, result in zip(todo, done, strict=True):
            slots[i] = result

        return Ok(BatchReport(operation=operation, results=tuple(r for r in slots if r is not None)))

    # -------------------------------------------------------------------------
    # Clone
    # -------------------------------------------------------------------------

    def _clone(
        self, start: Node, recursive: bool, include_lazy: bool, workers: int
    ) -> Result[BatchReport, LoadError]:
        decided: dict[int, OperationResult] = {}
        wave_number = 0

        while True:
            # Walked again every wave: new clones may mount new documents.
            scope = self._tree.walk(start, recursive)
            if isinstance(scope, Err):
                return scope
            nodes = scope.value

            wave: list[Node] = []
            blocked: set[int] = set()
            for node in nodes:
                if id(node) in decided:
                    continue
                parent = node.parent
                if parent is not None and id(parent) in blocked:
                    blocked.add(id(node))
                    continue
                skip = self._clone_skip(node, node is start, include_lazy)
                if skip is not None:
                    decided[id(node)] = skip
                    continue
                wave.append(node)
                blocked.add(id(node))

            if not wave:
                return Ok(
                    BatchReport(
                        operation=Operation.CLONE,
                        results=tuple(decided[id(n)] for n in nodes),
                    )
                )

            wave_number += 1
            if self._verbose:
                self._console.print(f"clone wave {wave_number}: {len(wave)} repositories", Style.DIM)
            for node, result in zip(wave, self._run(wave, self._clone_one, workers), strict=True):
                decided[id(node)] = result

    def _clone_skip(self, node: Node, explicit: bool, include_lazy: bool) -> OperationResult | None:
        if not node.is_repository:
            return self._result(node, Outcome.SKIPPED, "not a repository")
        if self._tree.is_cloned(node):
            return self._result(node, Outcome.SKIPPED, "already cloned")
        if any(a.is_repository and not self._tree.is_cloned(a) for a in node.ancestors()):
            return self._result(node, Outcome.SKIPPED, "parent repository not cloned")
        if self._tree.is_lazy(node) and not include_lazy and not explicit:
            return self._result(node, Outcome.SKIPPED, "lazy")
        return None

    def _clone_one(self, node: Node) -> OperationResult:
        match self._materializer.materialize(node):
            case Err(e):
                return self._result(node, Outcome.FAILED, e.message, error=e)
            case Ok(_):
                return self._result(node, Outcome.SUCCESS, "cloned")

    # -------------------------------------------------------------------------
    # Other operations
    # -------------------------------------------------------------------------

    def _precheck(
        self, node: Node, operation: Operation, explicit: bool, include_lazy: bool
    ) -> OperationResult | None:
        """Outcome decided without git work, or None if the node needs work.

        Only clone materializes: an absent repository is skipped by every
        other operation, whatever ``include_lazy`` says.
        """
        if operation is Operation.LIST:
            return self._result(node, Outcome.SUCCESS)
        if not node.is_repository:
            return self._result(node, Outcome.SKIPPED, "not a repository")
        if not self._tree.is_cloned(node):
            return self._result(node, Outcome.SKIPPED, "not cloned")
        if operation is Operation.PULL and self._tree.is_lazy(node) and not (include_lazy or explicit):
            return self._result(node, Outcome.SKIPPED, "lazy")
        return None

    def _perform(
        self, node: Node, operation: Operation, *, force: bool, message: str | None
    ) -> OperationResult:
        dest = self._tree.directory_of(node)

        if operation is Operation.STATUS:
            match self._git.status(dest):
                case Err(e):
                    return self._git_failure(node, e.command, e.message)
                case Ok(status):
                    return self._result(
                        node,
                        Outcome.SUCCESS,
                        status.summary(),
                        branch=status.branch,
                        dirty=status.is_dirty,
                    )

        if operation is Operation.COMMIT:
            match self._git.status(dest):
                case Err(e):
                    return self._git_failure(node, e.command, e.message)
                case Ok(status) if status.is_clean:
                    return self._result(node, Outcome.SKIPPED, "nothing to commit")
                case Ok(_):
                    pass
            call = self._git.commit(dest, message or "")
        elif operation is Operation.PULL:
            call = self._git.pull(dest, force=force)
        else:
            call = self._git.push(dest)

        match call:
            case Err(e):
                return self._git_failure(node, e.command, e.message)
            case Ok(output):
                last_line = output.splitlines()[-1] if output else None
                return self._result(node, Outcome.SUCCESS, last_line)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _run(
        self,
        nodes: list[Node],
        fn: Callable[[Node], OperationResult],
        workers: int,
    ) -> list[OperationResult]:
        """Apply ``fn`` to each node; results keep the order of ``nodes``."""
        slots: list[OperationResult | None] = [None] * len(nodes)

        if workers <= 1 or len(nodes) <= 1:
            for i, node in enumerate(nodes):
                slots[i] = fn(node)
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = {pool.submit(fn, node): i for i, node in enumerate(nodes)}
                for future in as_completed(futures):
                    slots[futures[future]] = future.result()

        return [r for r in slots if r is not None]

    def _git_failure(self, node: Node, command: str, message: str) -> OperationResult:
        error = GitOperationError(path=self._tree.path_of(node), command=command, message=message)
        return self._result(node, Outcome.FAILED, message, error=error)

    def _result(
        self,
        node: Node,
        outcome: Outcome,
        detail: str | None = None,
        *,
        error: MaterializationError | GitOperationError | None = None,
        branch: str | None = None,
        dirty: bool | None = None,
    ) -> OperationResult:
        return OperationResult(
            path=self._tree.path_of(node),
            outcome=outcome,
            detail=detail,
            error=error,
            url=node.url,
            cloned=self._tree.is_cloned(node),
            lazy=self._tree.is_lazy(node),
            branch=branch,
            dirty=dirty,
        )
