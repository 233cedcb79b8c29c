"""Document loading for the tree.

Documents are parsed once per process and cached by resolved path. Nested
documents are loaded on demand while walking a load chain: the documents
already entered on the way down. Entering a document that is already on the
chain is a cycle and fails before anything below it is built.
"""

from __future__ import annotations

from pathlib import Path

from muno.core.config import Document, NodeDefinition, load_document
from muno.core.errors import ConfigError, CyclicReferenceError
from muno.core.result import Err, Ok, Result

from .fetch_mode import FetchMode
from .node import Node

__all__ = ["DocumentLoader", "LoadError"]

type LoadError = ConfigError | CyclicReferenceError


class DocumentLoader:
    """Parses documents into nodes, with a per-process cache."""

    def __init__(self) -> None:
        self._cache: dict[Path, Document] = {}

    @property
    def loaded(self) -> frozenset[Path]:
        """Resolved paths of every document parsed so far."""
        return frozenset(self._cache)

    def document(self, path: Path) -> Result[Document, ConfigError]:
        """Return the parsed document at ``path``, parsing it on first use."""
        resolved = path.resolve()
        cached = self._cache.get(resolved)
        if cached is not None:
            return Ok(cached)

        result = load_document(resolved)
        if isinstance(result, Err):
            return result
        self._cache[resolved] = result.value
        return result

    def replace(self, document: Document) -> None:
        """Update the cache after a document was rewritten."""
        self._cache[document.path.resolve()] = document

    def load(self, path: Path, chain: tuple[Path, ...] = ()) -> Result[list[Node], LoadError]:
        """Build the top-level nodes of the document at ``path``.

        Args:
            path: Document to load.
            chain: Documents entered so far, outermost first.

        Returns:
            Ok(nodes) or Err(CyclicReferenceError) if ``path`` is already on
            the chain, Err(ConfigError) if it cannot be read.
        """
        resolved = path.resolve()
        if resolved in chain:
            return Err(CyclicReferenceError(chain=(*chain, resolved)))

        entered = (*chain, resolved)
        return self.document(resolved).map(lambda doc: self.build(doc.nodes, resolved, entered))

    def build(
        self,
        definitions: tuple[NodeDefinition, ...],
        source: Path,
        chain: tuple[Path, ...],
    ) -> list[Node]:
        return [self.make_node(d, source, chain) for d in definitions]

    def make_node(self, definition: NodeDefinition, source: Path, chain: tuple[Path, ...]) -> Node:
        document_ref = None
        if definition.file:
            document_ref = (source.parent / definition.file).resolve()

        node = Node(
            definition.name,
            url=definition.url,
            fetch=FetchMode(definition.fetch) if definition.fetch else None,
            ref=definition.file,
            document_ref=document_ref,
            source=source,
            chain=chain,
        )
        if definition.nodes:
            for child in self.build(definition.nodes, source, chain):
                node.attach(child)
            node.expanded = True
        return node
