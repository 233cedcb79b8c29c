"""Lazy materialization of tree nodes.

A node is materialized when its working directory holds a ``.git`` entry;
nothing else records the state. ``ensure`` clones a node at most once, even
when two callers race on it from worker threads.
"""

from __future__ import annotations

import threading
from pathlib import Path

from muno.core.errors import MaterializationError
from muno.core.result import Err, Ok, Result
from muno.git.capability import GitCapability
from muno.output.console import ConsoleProtocol, Style
from muno.platform.files import remove_tree
from muno.tree.model import WorkspaceTree
from muno.tree.node import Node

__all__ = ["LazyMaterializer"]


class LazyMaterializer:
    """Clones repository nodes on demand."""

    def __init__(
        self,
        tree: WorkspaceTree,
        git: GitCapability,
        console: ConsoleProtocol,
        *,
        verbose: bool = False,
    ) -> None:
        self._tree = tree
        self._git = git
        self._console = console
        self._verbose = verbose
        self._guard = threading.Lock()
        self._locks: dict[Path, threading.Lock] = {}

    def is_cloned(self, node: Node) -> bool:
        return self._tree.is_cloned(node)

    def ensure(self, node: Node) -> Result[Path, MaterializationError]:
        """Make ``node`` present on disk and return its directory.

        Repository ancestors that are still absent are cloned first, since
        the node's directory lives inside theirs.
        """
        for ancestor in node.ancestors():
            if ancestor.is_repository:
                result = self._materialize(ancestor)
                if isinstance(result, Err):
                    return result
        return self._materialize(node)

    def materialize(self, node: Node) -> Result[Path, MaterializationError]:
        """Clone ``node`` alone, without looking at its ancestors."""
        return self._materialize(node)

    def remove(self, node: Node) -> Result[None, MaterializationError]:
        """Delete the working directory of ``node`` and everything below it."""
        dest = self._tree.directory_of(node)
        try:
            remove_tree(dest)
        except OSError as e:
            return Err(MaterializationError(path=self._tree.path_of(node), message=str(e)))
        return Ok(None)

    def _materialize(self, node: Node) -> Result[Path, MaterializationError]:
        dest = self._tree.directory_of(node)
        virtual = self._tree.path_of(node)

        if not node.url:
            try:
                dest.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                return Err(MaterializationError(path=virtual, message=str(e)))
            return Ok(dest)

        with self._lock_for(dest):
            if self._tree.is_cloned(node):
                return Ok(dest)

            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                return Err(MaterializationError(path=virtual, message=str(e)))
            if dest.exists() and any(dest.iterdir()):
                return Err(
                    MaterializationError(
                        path=virtual,
                        message=f"{dest} exists and is not a git repository",
                    )
                )

            if self._verbose:
                self._console.print(f"clone {node.url} -> {dest}", Style.DIM)
            match self._git.clone(node.url, dest):
                case Err(e):
                    return Err(MaterializationError(path=virtual, message=e.message))
                case Ok(_):
                    return Ok(dest)

    def _lock_for(self, dest: Path) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(dest)
            if lock is None:
                lock = threading.Lock()
                self._locks[dest] = lock
            return lock
