"""Tree node.

Nodes own their children through ``children``; the parent link is a weak
reference so a detached subtree does not keep its old parent alive.
"""

from __future__ import annotations

import weakref
from pathlib import Path

from .fetch_mode import FetchMode

__all__ = ["Node"]


class Node:
    """One entry of the workspace tree.

    Attributes:
        name: Name among siblings ("" for the root).
        url: Remote repository URL, None for organizational nodes.
        fetch: Explicit fetch mode, None to classify from the URL.
        ref: Document reference as written (``file:``), None if inline.
        document_ref: Resolved path of the document holding the children.
        source: Document this node is declared in.
        chain: Documents loaded on the way to ``source``, root first.
        discovered: True when ``document_ref`` was found inside the cloned
            repository rather than declared.
        expanded: True once the children are known.
    """

    def __init__(
        self,
        name: str,
        *,
        url: str | None = None,
        fetch: FetchMode | None = None,
        ref: str | None = None,
        document_ref: Path | None = None,
        source: Path,
        chain: tuple[Path, ...] = (),
    ) -> None:
        self.name = name
        self.url = url
        self.fetch = fetch
        self.ref = ref
        self.document_ref = document_ref
        self.source = source
        self.chain = chain
        self.discovered = False
        # Inline children are attached by the loader; only references and
        # repositories that may carry their own document start unexpanded.
        self.expanded = document_ref is None and url is None
        self.children: list[Node] = []
        self._parent: weakref.ref[Node] | None = None

    @property
    def parent(self) -> Node | None:
        if self._parent is None:
            return None
        return self._parent()

    @property
    def is_root(self) -> bool:
        return self._parent is None

    @property
    def is_repository(self) -> bool:
        return bool(self.url)

    @property
    def children_document(self) -> Path:
        """Document that declares this node's children."""
        return self.document_ref or self.source

    def attach(self, child: Node) -> None:
        child._parent = weakref.ref(self)
        self.children.append(child)

    def detach(self, child: Node) -> None:
        self.children.remove(child)
        child._parent = None

    def child(self, name: str) -> Node | None:
        for c in self.children:
            if c.name == name:
                return c
        return None

    def ancestors(self) -> list[Node]:
        """Parents from the root down to the direct parent."""
        out: list[Node] = []
        p = self.parent
        while p is not None:
            out.append(p)
            p = p.parent
        out.reverse()
        return out

    def segments(self) -> list[str]:
        return [a.name for a in self.ancestors() if not a.is_root] + (
            [] if self.is_root else [self.name]
        )

    def __repr__(self) -> str:
        return f"Node({self.name!r}, url={self.url!r})"
