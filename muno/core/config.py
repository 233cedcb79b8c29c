"""Workspace document loading and saving.

A workspace document is a YAML file (``muno.yaml``) describing one level of
the repository tree:

    workspace:
      name: platform
      repos_dir: repos
    defaults:
      eager_markers: [-monorepo, -munorepo]
      max_parallel: 4
    nodes:
      - name: payment-service
        url: https://github.com/acme/payment-service.git
      - name: team
        file: teams/team.yaml

Only the root document needs a ``workspace`` section; documents referenced
through ``file:`` may contain just ``nodes``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from muno.platform.files import atomic_write_text

from .errors import ConfigError
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_int, get_list, get_str, get_table

__all__ = [
    "CONFIG_FILE_NAMES",
    "DEFAULT_EAGER_MARKERS",
    "DEFAULT_MAX_PARALLEL",
    "DEFAULT_REPOS_DIR",
    "Document",
    "NodeDefinition",
    "WorkspaceSettings",
    "find_config_file",
    "load_document",
    "parse_document",
    "save_document",
]

CONFIG_FILE_NAMES = ("muno.yaml", ".muno.yaml", "muno.yml", ".muno.yml")

DEFAULT_REPOS_DIR = "repos"
DEFAULT_MAX_PARALLEL = 4

# Repository name suffixes that mark aggregate repositories. These are cloned
# eagerly so their own nested documents can be discovered.
DEFAULT_EAGER_MARKERS = (
    "-monorepo",
    "-munorepo",
    "-muno",
    "-metarepo",
    "-platform",
    "-workspace",
    "-root-repo",
)

_FETCH_VALUES = {"eager", "lazy", "auto"}
_RESERVED_NAMES = {".", "..", "~"}


@dataclass(frozen=True, slots=True)
class NodeDefinition:
    """One node entry of a document.

    Attributes:
        name: Name among siblings.
        url: Remote repository URL (None for organizational nodes).
        file: Reference to another document holding this node's children.
        fetch: "eager", "lazy", or None to let the URL decide.
        nodes: Inline children declared in the same document.
    """

    name: str
    url: str | None = None
    file: str | None = None
    fetch: str | None = None
    nodes: tuple[NodeDefinition, ...] = ()

    def to_dict(self) -> StrDict:
        out: StrDict = {"name": self.name}
        if self.url:
            out["url"] = self.url
        if self.file:
            out["file"] = self.file
        if self.fetch:
            out["fetch"] = self.fetch
        if self.nodes:
            out["nodes"] = [n.to_dict() for n in self.nodes]
        return out


@dataclass(frozen=True, slots=True)
class WorkspaceSettings:
    """Settings from the ``workspace`` and ``defaults`` sections."""

    name: str = "workspace"
    repos_dir: str = DEFAULT_REPOS_DIR
    eager_markers: tuple[str, ...] = DEFAULT_EAGER_MARKERS
    max_parallel: int = DEFAULT_MAX_PARALLEL


@dataclass(frozen=True, slots=True)
class Document:
    """A parsed workspace document."""

    path: Path
    settings: WorkspaceSettings = field(default_factory=WorkspaceSettings)
    nodes: tuple[NodeDefinition, ...] = ()
    # False for documents read without a workspace table; saving keeps it out
    has_workspace: bool = True

    def with_nodes(self, nodes: tuple[NodeDefinition, ...]) -> Document:
        return replace(self, nodes=nodes)

    def to_dict(self) -> StrDict:
        s = self.settings
        data: StrDict = {}
        if self.has_workspace:
            data["workspace"] = {"name": s.name, "repos_dir": s.repos_dir}
        defaults: StrDict = {}
        if s.eager_markers != DEFAULT_EAGER_MARKERS:
            defaults["eager_markers"] = list(s.eager_markers)
        if s.max_parallel != DEFAULT_MAX_PARALLEL:
            defaults["max_parallel"] = s.max_parallel
        if defaults:
            data["defaults"] = defaults
        data["nodes"] = [n.to_dict() for n in self.nodes]
        return data


def find_config_file(directory: Path) -> Path | None:
    """Return the first workspace document found in ``directory``."""
    for name in CONFIG_FILE_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def _parse_settings(data: Mapping[str, object], path: Path) -> Result[WorkspaceSettings, ConfigError]:
    workspace: StrDict = get_table(data, "workspace") or {}
    defaults: StrDict = get_table(data, "defaults") or {}

    repos_dir = get_str(workspace, "repos_dir") or DEFAULT_REPOS_DIR
    repos_path = Path(repos_dir)
    if repos_path.is_absolute() or ".." in repos_path.parts:
        return Err(ConfigError(f"repos_dir must be a relative path: {repos_dir}", path=path))

    markers: tuple[str, ...] = DEFAULT_EAGER_MARKERS
    raw_markers = get_list(defaults, "eager_markers")
    if raw_markers is not None:
        if not all(isinstance(m, str) for m in raw_markers):
            return Err(ConfigError("defaults.eager_markers must be a list of strings", path=path))
        markers = tuple(str(m).strip().lower() for m in raw_markers if str(m).strip())

    max_parallel = get_int(defaults, "max_parallel")
    if max_parallel is not None and max_parallel < 0:
        return Err(ConfigError("defaults.max_parallel must be >= 0", path=path))

    return Ok(
        WorkspaceSettings(
            name=get_str(workspace, "name") or path.parent.name or "workspace",
            repos_dir=repos_dir,
            eager_markers=markers,
            max_parallel=DEFAULT_MAX_PARALLEL if max_parallel is None else max_parallel,
        )
    )


def _parse_node(item: object, path: Path) -> Result[NodeDefinition, ConfigError]:
    entry = as_str_dict(item)
    if entry is None:
        return Err(ConfigError("each node must be a mapping", path=path))

    name = get_str(entry, "name")
    if name is None:
        return Err(ConfigError("node name is required", path=path))
    if "/" in name or "\\" in name or name in _RESERVED_NAMES:
        return Err(ConfigError(f"invalid node name: {name!r}", path=path))

    url = get_str(entry, "url")
    ref = get_str(entry, "file") or get_str(entry, "config")
    if url and ref:
        return Err(ConfigError(f"node {name} cannot have both url and file", path=path))

    fetch = get_str(entry, "fetch")
    if fetch is not None:
        fetch = fetch.lower()
        if fetch not in _FETCH_VALUES:
            return Err(
                ConfigError(f"node {name}: fetch must be one of eager, lazy, auto", path=path)
            )
        if fetch == "auto":
            fetch = None
    else:
        lazy = get_bool(entry, "lazy")
        if lazy is not None:
            fetch = "lazy" if lazy else "eager"

    children_result = _parse_nodes(get_list(entry, "nodes") or [], path)
    if isinstance(children_result, Err):
        return children_result
    children = children_result.value
    if children and ref:
        return Err(ConfigError(f"node {name}: inline nodes and file are exclusive", path=path))

    return Ok(NodeDefinition(name=name, url=url, file=ref, fetch=fetch, nodes=children))


def _parse_nodes(raw: list[object], path: Path) -> Result[tuple[NodeDefinition, ...], ConfigError]:
    nodes: list[NodeDefinition] = []
    seen: set[str] = set()
    for item in raw:
        result = _parse_node(item, path)
        if isinstance(result, Err):
            return result
        node = result.value
        if node.name in seen:
            return Err(ConfigError(f"duplicate node name: {node.name}", path=path))
        seen.add(node.name)
        nodes.append(node)
    return Ok(tuple(nodes))


def parse_document(data: object, path: Path) -> Result[Document, ConfigError]:
    """Build a Document from parsed YAML data."""
    if data is None:
        data = {}
    table = as_str_dict(data)
    if table is None:
        return Err(ConfigError("document root must be a mapping", path=path))

    settings = _parse_settings(table, path)
    if isinstance(settings, Err):
        return settings

    raw_nodes = table.get("nodes")
    if raw_nodes is None:
        raw_nodes = []
    if not isinstance(raw_nodes, list):
        return Err(ConfigError("'nodes' must be a list", path=path))

    nodes = _parse_nodes(raw_nodes, path)
    if isinstance(nodes, Err):
        return nodes

    return Ok(
        Document(
            path=path,
            settings=settings.value,
            nodes=nodes.value,
            has_workspace="workspace" in table,
        )
    )


def load_document(path: Path) -> Result[Document, ConfigError]:
    """Load and validate a workspace document.

    Args:
        path: Path to a YAML document.

    Returns:
        Ok(Document) on success, Err(ConfigError) on failure.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(ConfigError(f"config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"permission denied reading: {path}", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(ConfigError(f"error reading {path}: {e}", path=path))

    try:
        data: object = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(ConfigError(f"invalid YAML syntax: {e}", path=path))

    return parse_document(data, path)


def save_document(document: Document) -> Result[None, ConfigError]:
    """Write a document back to its path."""
    content = yaml.safe_dump(document.to_dict(), sort_keys=False, default_flow_style=False)
    try:
        atomic_write_text(document.path, content)
    except OSError as e:
        return Err(ConfigError(f"could not write {document.path}: {e}", path=document.path, io=True))
    return Ok(None)
