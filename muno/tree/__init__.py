"""Workspace tree: nodes, document loading, navigation and path mapping."""

from muno.tree.fetch_mode import FetchMode, classify_fetch_mode, repo_name_from_url
from muno.tree.loader import DocumentLoader, LoadError
from muno.tree.model import TreeCounts, WorkspaceTree
from muno.tree.node import Node
from muno.tree.paths import PathResolver

__all__ = [
    "DocumentLoader",
    "FetchMode",
    "LoadError",
    "Node",
    "PathResolver",
    "TreeCounts",
    "WorkspaceTree",
    "classify_fetch_mode",
    "repo_name_from_url",
]
