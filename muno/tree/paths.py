"""Virtual/physical path resolution.

Each node maps to ``<workspace>/<repos_dir>/<seg1>/<seg2>/...``. The node a
command works on by default is found CWD-first:

1. the deepest node whose directory contains the current directory
2. the persisted position, if it still names a node
3. the root
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from muno.core.errors import MaterializationError, NodeNotFoundError
from muno.core.position import PositionStore
from muno.core.result import Err, Ok, Result

from .loader import LoadError
from .model import WorkspaceTree
from .node import Node

__all__ = ["Materializer", "PathResolver", "ResolveError"]

type ResolveError = NodeNotFoundError | LoadError | MaterializationError


class Materializer(Protocol):
    def ensure(self, node: Node) -> Result[Path, MaterializationError]: ...


class PathResolver:
    """Maps virtual paths to working directories and back."""

    def __init__(
        self,
        tree: WorkspaceTree,
        position: PositionStore,
        materializer: Materializer | None = None,
        *,
        cwd: Path | None = None,
    ) -> None:
        self.tree = tree
        self.position = position
        self.materializer = materializer
        self._cwd = cwd

    @property
    def cwd(self) -> Path:
        return (self._cwd or Path.cwd()).resolve()

    def physical_path(self, node: Node) -> Path:
        return self.tree.directory_of(node)

    def current_node(self) -> Node:
        """The node commands default to (CWD, then position, then root)."""
        from_cwd = self._node_at(self.cwd)
        if from_cwd is not None:
            return from_cwd

        stored = self.position.get()
        if stored:
            match self.tree.resolve_virtual_path(stored):
                case Ok(node):
                    return node
                case Err(_):
                    pass
        return self.tree.root

    def resolve_node(self, target: str | None) -> Result[Node, NodeNotFoundError | LoadError]:
        """Resolve ``target`` relative to the current node (current node if None)."""
        current = self.current_node()
        if target is None:
            return Ok(current)
        return self.tree.resolve_virtual_path(target, base=current)

    def resolve(self, target: str | None, ensure_cloned: bool = False) -> Result[Path, ResolveError]:
        """Physical directory for ``target``, cloning it first if asked."""
        node = self.resolve_node(target)
        if isinstance(node, Err):
            return node
        if ensure_cloned and self.materializer is not None:
            return self.materializer.ensure(node.value)
        return Ok(self.physical_path(node.value))

    def physical_to_virtual(self, path: Path) -> Result[str, NodeNotFoundError | LoadError]:
        """Virtual path of the node whose directory is exactly ``path``."""
        resolved = path.resolve()
        root = self.tree.repos_root.resolve()
        try:
            rel = resolved.relative_to(root)
        except ValueError:
            return Err(NodeNotFoundError(path=str(path), segment=str(path)))

        virtual = "/" + "/".join(rel.parts)
        node = self.tree.resolve_virtual_path(virtual)
        if isinstance(node, Err):
            return node
        return Ok(self.tree.path_of(node.value))

    def _node_at(self, directory: Path) -> Node | None:
        root = self.tree.repos_root.resolve()
        try:
            rel = directory.relative_to(root)
        except ValueError:
            return None

        current = self.tree.root
        for part in rel.parts:
            kids = self.tree.children(current)
            if isinstance(kids, Err):
                break
            nxt = current.child(part)
            if nxt is None:
                break
            current = nxt
        return current
