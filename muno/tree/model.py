"""In-memory workspace tree.

The tree is built from the root document. Children that live in other
documents are attached the first time they are asked for, either because a
node references a document (``file:``) or because a cloned repository carries
its own ``muno.yaml``.

Virtual paths address nodes from the root:

    /                       the root
    /backend/payments       absolute
    payments                relative to a base node
    ../frontend             ``..`` stops at the root
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from muno.core.config import Document, NodeDefinition, find_config_file
from muno.core.errors import ConfigError, DuplicateNameError, NodeNotFoundError
from muno.core.result import Err, Ok, Result

from .fetch_mode import FetchMode, classify_fetch_mode
from .loader import DocumentLoader, LoadError
from .node import Node

__all__ = ["TreeCounts", "WorkspaceTree"]


@dataclass(frozen=True, slots=True)
class TreeCounts:
    """Node totals under a subtree."""

    total: int
    repositories: int
    cloned: int
    lazy: int


class WorkspaceTree:
    """The node hierarchy of one workspace.

    Attributes:
        root: Root node (name "", virtual path "/").
        document_path: Resolved path of the root document.
        repos_root: Directory the root node maps to.
        loader: Document loader shared by every expansion.
    """

    def __init__(
        self,
        document: Document,
        repos_root: Path,
        *,
        loader: DocumentLoader | None = None,
    ) -> None:
        self.document_path = document.path.resolve()
        self.settings = document.settings
        self.repos_root = repos_root
        self.loader = loader or DocumentLoader()
        self.loader.replace(document)

        chain = (self.document_path,)
        self.root = Node("", source=self.document_path, chain=chain)
        for node in self.loader.build(document.nodes, self.document_path, chain):
            self.root.attach(node)
        self.root.expanded = True
        self._index: dict[str, Node] | None = None

    @classmethod
    def load(
        cls,
        config_path: Path,
        repos_root: Path,
        *,
        loader: DocumentLoader | None = None,
    ) -> Result[WorkspaceTree, ConfigError]:
        loader = loader or DocumentLoader()
        match loader.document(config_path):
            case Err(e):
                return Err(e)
            case Ok(document):
                return Ok(cls(document, repos_root, loader=loader))

    # -------------------------------------------------------------------------
    # Node facts
    # -------------------------------------------------------------------------

    @property
    def eager_markers(self) -> Sequence[str]:
        return self.settings.eager_markers

    def fetch_mode(self, node: Node) -> FetchMode:
        return classify_fetch_mode(node.url, node.fetch, self.eager_markers)

    def is_lazy(self, node: Node) -> bool:
        return node.is_repository and self.fetch_mode(node) is FetchMode.LAZY

    def path_of(self, node: Node) -> str:
        """Absolute virtual path of ``node``."""
        return "/" + "/".join(node.segments())

    def directory_of(self, node: Node) -> Path:
        """Working directory of ``node``: one level per path segment."""
        return self.repos_root.joinpath(*node.segments())

    def is_cloned(self, node: Node) -> bool:
        return (self.directory_of(node) / ".git").exists()

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def children(self, node: Node) -> Result[list[Node], LoadError]:
        """Children of ``node``, loading referenced documents on first use."""
        if not node.expanded:
            expanded = self._expand(node)
            if isinstance(expanded, Err):
                return expanded
        return Ok(list(node.children))

    def resolve_virtual_path(
        self, path: str, base: Node | None = None
    ) -> Result[Node, NodeNotFoundError | LoadError]:
        """Resolve ``path`` to a node.

        Args:
            path: Virtual path. ``/`` and ``~`` are the root; relative paths
                start at ``base``.
            base: Starting node for relative paths (root when None).

        Returns:
            Ok(node), or Err(NodeNotFoundError) naming the first segment
            that does not exist.
        """
        text = path.strip()
        current = base or self.root
        if text == "~" or text.startswith("~/"):
            current = self.root
            text = text[1:]
        elif text.startswith("/"):
            current = self.root
            cached = self._lookup(text)
            if cached is not None:
                return Ok(cached)

        for segment in text.split("/"):
            if segment in ("", "."):
                continue
            if segment == "..":
                current = current.parent or current
                continue

            kids = self.children(current)
            if isinstance(kids, Err):
                return kids
            nxt = current.child(segment)
            if nxt is None:
                return Err(NodeNotFoundError(path=path, segment=segment))
            current = nxt
        return Ok(current)

    def walk(self, node: Node, recursive: bool = True) -> Result[list[Node], LoadError]:
        """Nodes under ``node`` in pre-order, ``node`` first.

        Without ``recursive`` only ``node`` and its direct children.
        """
        out: list[Node] = []
        stack = [node]
        while stack:
            current = stack.pop()
            out.append(current)
            if not recursive and current is not node:
                continue
            kids = self.children(current)
            if isinstance(kids, Err):
                return kids
            stack.extend(reversed(kids.value))
        return Ok(out)

    def count(self, node: Node) -> Result[TreeCounts, LoadError]:
        nodes = self.walk(node)
        if isinstance(nodes, Err):
            return nodes
        repos = [n for n in nodes.value if n.is_repository]
        return Ok(
            TreeCounts(
                total=len(nodes.value),
                repositories=len(repos),
                cloned=sum(1 for n in repos if self.is_cloned(n)),
                lazy=sum(1 for n in repos if self.is_lazy(n)),
            )
        )

    # -------------------------------------------------------------------------
    # Structure edits
    # -------------------------------------------------------------------------

    def insert_child(self, parent: Node, node: Node) -> Result[None, DuplicateNameError | LoadError]:
        """Attach ``node`` under ``parent``, declared in the parent's children document."""
        kids = self.children(parent)
        if isinstance(kids, Err):
            return kids
        if parent.child(node.name) is not None:
            return Err(DuplicateNameError(parent=self.path_of(parent), name=node.name))

        node.source = parent.children_document
        if parent.document_ref is not None:
            node.chain = (*parent.chain, parent.document_ref)
        else:
            node.chain = parent.chain
        parent.attach(node)
        parent.expanded = True
        self._index = None
        return Ok(None)

    def remove_subtree(self, node: Node) -> Result[None, ConfigError]:
        """Detach ``node`` and everything below it. Never touches disk."""
        parent = node.parent
        if parent is None:
            return Err(ConfigError("cannot remove the workspace root"))
        parent.detach(node)
        self._index = None
        return Ok(None)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def owner_of(self, document_path: Path) -> Node | None:
        """Node whose children are the top-level nodes of ``document_path``."""
        resolved = document_path.resolve()
        if resolved == self.document_path:
            return self.root
        for node in self._loaded_nodes():
            if node.document_ref == resolved:
                return node
        return None

    def serialize(self, document_path: Path) -> Result[Document, ConfigError]:
        """Rebuild a document from the nodes it declares."""
        owner = self.owner_of(document_path)
        if owner is None:
            return Err(ConfigError("document is not mounted in the tree", path=document_path))
        match self.loader.document(document_path):
            case Err(e):
                return Err(e)
            case Ok(base):
                nodes = tuple(self._definition(c) for c in owner.children)
                return Ok(base.with_nodes(nodes))

    def to_document(self) -> Document:
        """The root document as currently held in memory."""
        nodes = tuple(self._definition(c) for c in self.root.children)
        match self.loader.document(self.document_path):
            case Ok(base):
                return base.with_nodes(nodes)
            case Err(_):
                return Document(path=self.document_path, settings=self.settings, nodes=nodes)

    def _definition(self, node: Node) -> NodeDefinition:
        inline: tuple[NodeDefinition, ...] = ()
        if node.document_ref is None:
            inline = tuple(self._definition(c) for c in node.children)
        return NodeDefinition(
            name=node.name,
            url=node.url,
            file=None if node.discovered else node.ref,
            fetch=node.fetch.value if node.fetch else None,
            nodes=inline,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _expand(self, node: Node) -> Result[None, LoadError]:
        ref = node.document_ref
        if ref is None:
            # Repository nodes mount their own document once cloned.
            if not self.is_cloned(node):
                return Ok(None)
            found = find_config_file(self.directory_of(node))
            if found is None:
                node.expanded = True
                return Ok(None)
            ref = found.resolve()
            node.document_ref = ref
            node.discovered = True

        loaded = self.loader.load(ref, node.chain)
        if isinstance(loaded, Err):
            return loaded
        for child in loaded.value:
            node.attach(child)
        node.expanded = True
        self._index = None
        return Ok(None)

    def _loaded_nodes(self) -> list[Node]:
        out: list[Node] = []
        stack = [self.root]
        while stack:
            current = stack.pop()
            out.append(current)
            stack.extend(reversed(current.children))
        return out

    def _lookup(self, path: str) -> Node | None:
        if self._index is None:
            self._index = {self.path_of(n): n for n in self._loaded_nodes()}
        key = "/" + "/".join(s for s in path.split("/") if s)
        return self._index.get(key)
