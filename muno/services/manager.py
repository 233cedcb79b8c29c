"""Workspace manager facade.

One object per CLI invocation. It owns the tree, the materializer, the
resolver and the executor, and exposes the operations commands call:

    manager = WorkspaceManager.open(workspace, GitCli(), console).unwrap()
    match manager.clone_repos(recursive=True):
        case Ok(report):
            render_report(report, console)
        case Err(error):
            print_workspace_error(error, console)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from muno.core.config import CONFIG_FILE_NAMES, Document, WorkspaceSettings, save_document
from muno.core.errors import ConfigError, WorkspaceError
from muno.core.position import FilePositionStore, PositionStore
from muno.core.result import Err, Ok, Result
from muno.core.workspace import Workspace
from muno.git.capability import GitCapability
from muno.output.console import ConsoleProtocol, Style
from muno.output.render import render_tree
from muno.tree.fetch_mode import FetchMode, repo_name_from_url
from muno.tree.loader import DocumentLoader
from muno.tree.model import WorkspaceTree
from muno.tree.node import Node
from muno.tree.paths import PathResolver

from .executor import BatchReport, Operation, OperationExecutor
from .materializer import LazyMaterializer

__all__ = ["Location", "WorkspaceManager"]

_RESERVED_NAMES = {".", "..", "~"}


@dataclass(frozen=True, slots=True)
class Location:
    """A node addressed both ways."""

    virtual: str
    physical: Path


class WorkspaceManager:
    """Entry point for every workspace operation."""

    def __init__(
        self,
        workspace: Workspace,
        tree: WorkspaceTree,
        git: GitCapability,
        position: PositionStore,
        console: ConsoleProtocol,
        *,
        cwd: Path | None = None,
        verbose: bool = False,
    ) -> None:
        self.workspace = workspace
        self.tree = tree
        self.position = position
        self._console = console
        self._verbose = verbose
        self.materializer = LazyMaterializer(tree, git, console, verbose=verbose)
        self.resolver = PathResolver(tree, position, self.materializer, cwd=cwd)
        self.executor = OperationExecutor(tree, self.materializer, git, console, verbose=verbose)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        workspace: Workspace,
        git: GitCapability,
        console: ConsoleProtocol,
        *,
        position: PositionStore | None = None,
        cwd: Path | None = None,
        verbose: bool = False,
    ) -> Result[WorkspaceManager, ConfigError]:
        """Load the root document of ``workspace`` and build a manager."""
        loader = DocumentLoader()
        document = loader.document(workspace.config_path)
        if isinstance(document, Err):
            return document

        settings = document.value.settings
        tree = WorkspaceTree(document.value, workspace.repos_path(settings.repos_dir), loader=loader)
        if verbose:
            console.print(f"loaded {workspace.config_path}", Style.DIM)
        return Ok(
            cls(
                workspace,
                tree,
                git,
                position or FilePositionStore(workspace.position_path),
                console,
                cwd=cwd,
                verbose=verbose,
            )
        )

    @classmethod
    def initialize(
        cls,
        root: Path,
        git: GitCapability,
        console: ConsoleProtocol,
        *,
        name: str | None = None,
        position: PositionStore | None = None,
        cwd: Path | None = None,
        verbose: bool = False,
    ) -> Result[WorkspaceManager, ConfigError]:
        """Create the workspace layout under ``root`` and open it.

        An existing document is kept as-is; only missing directories are
        created.
        """
        workspace = Workspace(root=root.resolve())
        if not workspace.exists():
            document = Document(
                path=workspace.root / CONFIG_FILE_NAMES[0],
                settings=WorkspaceSettings(name=name or workspace.root.name or "workspace"),
            )
            saved = save_document(document)
            if isinstance(saved, Err):
                return saved
            console.success(f"created {document.path}")
        else:
            console.info(f"workspace already initialized at {workspace.root}")

        opened = cls.open(workspace, git, console, position=position, cwd=cwd, verbose=verbose)
        if isinstance(opened, Err):
            return opened

        manager = opened.value
        try:
            manager.tree.repos_root.mkdir(parents=True, exist_ok=True)
            workspace.state_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(ConfigError(f"could not create workspace directories: {e}", path=root, io=True))
        return Ok(manager)

    @classmethod
    def init_workspace(
        cls,
        root: Path,
        git: GitCapability,
        console: ConsoleProtocol,
        *,
        name: str | None = None,
        clone_eager: bool = True,
        position: PositionStore | None = None,
        cwd: Path | None = None,
        verbose: bool = False,
    ) -> Result[tuple[WorkspaceManager, BatchReport | None], WorkspaceError]:
        """Initialize, then clone the eager repositories if asked."""
        opened = cls.initialize(
            root, git, console, name=name, position=position, cwd=cwd, verbose=verbose
        )
        if isinstance(opened, Err):
            return opened
        manager = opened.value
        if not clone_eager:
            return Ok((manager, None))

        report = manager.clone_repos("/", recursive=True, include_lazy=False)
        if isinstance(report, Err):
            return report
        return Ok((manager, report.value))

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def resolve_path(self, target: str | None = None, ensure: bool = False) -> Result[Path, WorkspaceError]:
        """Physical directory of ``target``; clones it first with ``ensure``."""
        return self.resolver.resolve(target, ensure_cloned=ensure)

    def tree_path(self, physical: Path) -> Result[str, WorkspaceError]:
        """Virtual path of the node whose directory is ``physical``."""
        return self.resolver.physical_to_virtual(physical)

    def use_node(self, target: str) -> Result[Location, WorkspaceError]:
        """Move to ``target``: clone it if needed and persist the position."""
        node = self.resolver.resolve_node(target)
        if isinstance(node, Err):
            return node

        ensured = self.materializer.ensure(node.value)
        if isinstance(ensured, Err):
            return ensured

        virtual = self.tree.path_of(node.value)
        stored = self.position.set(virtual)
        if isinstance(stored, Err):
            return stored
        return Ok(Location(virtual=virtual, physical=ensured.value))

    def current_position(self) -> Location:
        node = self.resolver.current_node()
        return Location(virtual=self.tree.path_of(node), physical=self.tree.directory_of(node))

    def clear_position(self) -> Result[None, ConfigError]:
        return self.position.clear()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_nodes(self, target: str | None = None, recursive: bool = False) -> Result[BatchReport, WorkspaceError]:
        return self._apply(target, Operation.LIST, recursive=recursive)

    def show_tree_at_path(self, target: str | None = None, depth: int | None = None) -> Result[None, WorkspaceError]:
        node = self.resolver.resolve_node(target)
        if isinstance(node, Err):
            return node
        return render_tree(self.tree, node.value, self._console, depth=depth)

    def status_node(self, target: str | None = None, recursive: bool = True) -> Result[BatchReport, WorkspaceError]:
        return self._apply(target, Operation.STATUS, recursive=recursive)

    # -------------------------------------------------------------------------
    # Git operations
    # -------------------------------------------------------------------------

    def clone_repos(
        self,
        target: str | None = None,
        recursive: bool = True,
        include_lazy: bool = False,
        max_parallel: int | None = None,
    ) -> Result[BatchReport, WorkspaceError]:
        return self._apply(
            target,
            Operation.CLONE,
            recursive=recursive,
            include_lazy=include_lazy,
            max_parallel=max_parallel,
        )

    def pull_node(
        self, target: str | None = None, recursive: bool = True, force: bool = False
    ) -> Result[BatchReport, WorkspaceError]:
        return self.pull_node_with_options(target, recursive=recursive, force=force)

    def pull_node_with_options(
        self,
        target: str | None = None,
        recursive: bool = True,
        force: bool = False,
        include_lazy: bool = False,
        max_parallel: int | None = None,
    ) -> Result[BatchReport, WorkspaceError]:
        """Pull cloned repositories; lazy ones only with ``include_lazy``. Never clones."""
        return self._apply(
            target,
            Operation.PULL,
            recursive=recursive,
            force=force,
            include_lazy=include_lazy,
            max_parallel=max_parallel,
        )

    def commit_node(
        self, target: str | None, message: str, recursive: bool = True
    ) -> Result[BatchReport, WorkspaceError]:
        if not message.strip():
            return Err(ConfigError("commit message must not be empty"))
        return self._apply(target, Operation.COMMIT, recursive=recursive, message=message)

    def push_node(self, target: str | None = None, recursive: bool = True) -> Result[BatchReport, WorkspaceError]:
        return self._apply(target, Operation.PUSH, recursive=recursive)

    # -------------------------------------------------------------------------
    # Structure edits
    # -------------------------------------------------------------------------

    def add_repo_simple(
        self,
        url: str,
        name: str | None = None,
        fetch: FetchMode | None = None,
        parent: str | None = None,
    ) -> Result[Location, WorkspaceError]:
        """Declare a repository under ``parent`` and save its document.

        Eager repositories are cloned right away; if that clone fails the
        declaration is rolled back.
        """
        node_name = name or repo_name_from_url(url)
        if not node_name or "/" in node_name or "\\" in node_name or node_name in _RESERVED_NAMES:
            return Err(ConfigError(f"invalid node name: {node_name!r}"))

        target = self.resolver.resolve_node(parent)
        if isinstance(target, Err):
            return target
        owner = target.value

        node = Node(node_name, url=url, fetch=fetch, source=owner.children_document)
        inserted = self.tree.insert_child(owner, node)
        if isinstance(inserted, Err):
            return inserted

        saved = self._save(owner.children_document)
        if isinstance(saved, Err):
            self.tree.remove_subtree(node)
            return saved

        virtual = self.tree.path_of(node)
        if self.tree.fetch_mode(node) is FetchMode.EAGER:
            cloned = self.materializer.ensure(node)
            if isinstance(cloned, Err):
                self.tree.remove_subtree(node)
                rolled_back = self._save(owner.children_document)
                if isinstance(rolled_back, Err):
                    return rolled_back
                return cloned

        return Ok(Location(virtual=virtual, physical=self.tree.directory_of(node)))

    def remove_node(self, target: str, delete_files: bool = False) -> Result[str, WorkspaceError]:
        """Remove ``target`` from its document; delete its files if asked.

        Returns the virtual path that was removed.
        """
        resolved = self.resolver.resolve_node(target)
        if isinstance(resolved, Err):
            return resolved
        node = resolved.value
        parent = node.parent
        if parent is None:
            return Err(ConfigError("cannot remove the workspace root"))

        virtual = self.tree.path_of(node)
        if delete_files:
            # Paths are derived from the parent chain, so delete before detaching.
            removed = self.materializer.remove(node)
            if isinstance(removed, Err):
                return removed

        detached = self.tree.remove_subtree(node)
        if isinstance(detached, Err):
            return detached
        saved = self._save(parent.children_document)
        if isinstance(saved, Err):
            return saved

        stored = self.position.get()
        if stored is not None and (stored == virtual or stored.startswith(virtual + "/")):
            cleared = self.position.clear()
            if isinstance(cleared, Err):
                return cleared
        return Ok(virtual)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply(
        self,
        target: str | None,
        operation: Operation,
        *,
        recursive: bool,
        include_lazy: bool = False,
        max_parallel: int | None = None,
        force: bool = False,
        message: str | None = None,
    ) -> Result[BatchReport, WorkspaceError]:
        start = self.resolver.resolve_node(target)
        if isinstance(start, Err):
            return start
        return self.executor.apply(
            start.value,
            operation,
            recursive=recursive,
            include_lazy=include_lazy,
            max_parallel=max_parallel,
            force=force,
            message=message,
        )

    def _save(self, document_path: Path) -> Result[None, ConfigError]:
        document = self.tree.serialize(document_path)
        if isinstance(document, Err):
            return document
        saved = save_document(document.value)
        if isinstance(saved, Err):
            return saved
        self.tree.loader.replace(document.value)
        if self._verbose:
            self._console.print(f"saved {document.value.path}", Style.DIM)
        return Ok(None)
