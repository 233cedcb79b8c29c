"""Tests for WorkspaceManager."""

from __future__ import annotations

from pathlib import Path

from muno.core.config import load_document
from muno.core.errors import ConfigError, DuplicateNameError, MaterializationError, NodeNotFoundError
from muno.core.position import MemoryPositionStore
from muno.core.result import Err, Ok
from muno.git.capability import RecordingGit
from muno.output.console import MockConsole
from muno.services.executor import Outcome
from muno.services.manager import Location, WorkspaceManager
from muno.tree.fetch_mode import FetchMode

DOC = """\
workspace:
  name: acme
nodes:
  - name: backend
    nodes:
      - name: payments
        url: https://github.com/acme/payment-service.git
  - name: team
    file: team.yaml
  - name: platform
    url: https://github.com/acme/acme-platform.git
"""

TEAM_DOC = "nodes:\n  - name: web\n    url: https://github.com/acme/web.git\n"


def _manager(
    tmp_path: Path, git: RecordingGit | None = None, position: MemoryPositionStore | None = None
) -> tuple[WorkspaceManager, RecordingGit, MemoryPositionStore]:
    (tmp_path / "muno.yaml").write_text(DOC, encoding="utf-8")
    (tmp_path / "team.yaml").write_text(TEAM_DOC, encoding="utf-8")
    git = git or RecordingGit()
    position = position or MemoryPositionStore()
    result = WorkspaceManager.initialize(tmp_path, git, MockConsole(), position=position, cwd=tmp_path)
    assert isinstance(result, Ok)
    return result.value, git, position


def _names(path: Path) -> list[str]:
    document = load_document(path)
    assert isinstance(document, Ok)
    return [n.name for n in document.value.nodes]


class TestInit:
    def test_creates_layout(self, tmp_path: Path) -> None:
        root = tmp_path / "ws"
        result = WorkspaceManager.init_workspace(
            root, RecordingGit(), MockConsole(), name="acme", clone_eager=False
        )
        assert isinstance(result, Ok)
        manager, report = result.value
        assert report is None
        assert (root / "muno.yaml").is_file()
        assert (root / "repos").is_dir()
        assert (root / ".muno").is_dir()
        assert manager.tree.settings.name == "acme"

    def test_clones_eager_repositories(self, tmp_path: Path) -> None:
        (tmp_path / "muno.yaml").write_text(DOC, encoding="utf-8")
        (tmp_path / "team.yaml").write_text(TEAM_DOC, encoding="utf-8")
        git = RecordingGit()
        console = MockConsole()

        result = WorkspaceManager.init_workspace(tmp_path, git, console, position=MemoryPositionStore())

        assert isinstance(result, Ok)
        _, report = result.value
        assert report is not None
        assert [r.path for r in report.succeeded] == ["/platform"]
        assert git.dests("clone") == [tmp_path.resolve() / "repos" / "platform"]
        assert console.find("already initialized")

    def test_existing_document_is_kept(self, tmp_path: Path) -> None:
        (tmp_path / "muno.yaml").write_text(DOC, encoding="utf-8")
        WorkspaceManager.initialize(tmp_path, RecordingGit(), MockConsole(), name="other")
        assert (tmp_path / "muno.yaml").read_text(encoding="utf-8") == DOC


class TestNavigation:
    def test_use_clones_and_persists(self, tmp_path: Path) -> None:
        manager, git, position = _manager(tmp_path)

        result = manager.use_node("/backend/payments")

        assert result == Ok(
            Location(virtual="/backend/payments", physical=tmp_path.resolve() / "repos" / "backend" / "payments")
        )
        assert position.get() == "/backend/payments"
        assert git.count("clone") == 1
        assert manager.current_position().virtual == "/backend/payments"

    def test_use_relative_to_position(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path, position=MemoryPositionStore("/backend"))
        result = manager.use_node("payments")
        assert isinstance(result, Ok)
        assert result.value.virtual == "/backend/payments"

    def test_use_unknown(self, tmp_path: Path) -> None:
        manager, git, position = _manager(tmp_path)
        result = manager.use_node("/nowhere")
        assert isinstance(result, Err)
        assert isinstance(result.error, NodeNotFoundError)
        assert position.get() is None
        assert git.calls == []

    def test_resolve_path_and_back(self, tmp_path: Path) -> None:
        manager, git, _ = _manager(tmp_path)
        physical = manager.resolve_path("/team/web")
        assert isinstance(physical, Ok)
        assert git.count("clone") == 0
        assert manager.tree_path(physical.value) == Ok("/team/web")

    def test_resolve_path_ensure(self, tmp_path: Path) -> None:
        manager, git, _ = _manager(tmp_path)
        assert isinstance(manager.resolve_path("/team/web", ensure=True), Ok)
        assert git.count("clone") == 1

    def test_clear_position(self, tmp_path: Path) -> None:
        manager, _, position = _manager(tmp_path, position=MemoryPositionStore("/team"))
        assert manager.clear_position() == Ok(None)
        assert position.get() is None
        assert manager.current_position().virtual == "/"


class TestAdd:
    def test_lazy_repository_is_only_declared(self, tmp_path: Path) -> None:
        manager, git, _ = _manager(tmp_path)

        result = manager.add_repo_simple("https://github.com/acme/ledger.git", parent="/backend")

        assert isinstance(result, Ok)
        assert result.value.virtual == "/backend/ledger"
        assert git.count("clone") == 0
        document = load_document(tmp_path / "muno.yaml").unwrap()
        assert [n.name for n in document.nodes[0].nodes] == ["payments", "ledger"]

    def test_eager_repository_is_cloned(self, tmp_path: Path) -> None:
        manager, git, _ = _manager(tmp_path)
        result = manager.add_repo_simple("https://github.com/acme/tools.git", name="tools", fetch=FetchMode.EAGER)
        assert isinstance(result, Ok)
        assert git.dests("clone") == [tmp_path.resolve() / "repos" / "tools"]
        assert "tools" in _names(tmp_path / "muno.yaml")

    def test_failed_eager_clone_is_rolled_back(self, tmp_path: Path) -> None:
        url = "https://github.com/acme/infra-monorepo.git"
        manager, _, _ = _manager(tmp_path, RecordingGit(fail_clone={url}))

        result = manager.add_repo_simple(url)

        assert isinstance(result, Err)
        assert isinstance(result.error, MaterializationError)
        assert "infra-monorepo" not in _names(tmp_path / "muno.yaml")
        assert isinstance(manager.tree.resolve_virtual_path("/infra-monorepo"), Err)

    def test_duplicate_name(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path)
        result = manager.add_repo_simple("https://github.com/other/payments.git", parent="/backend")
        assert result == Err(DuplicateNameError(parent="/backend", name="payments"))
        document = load_document(tmp_path / "muno.yaml").unwrap()
        assert [n.name for n in document.nodes[0].nodes] == ["payments"]

    def test_invalid_name(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path)
        result = manager.add_repo_simple("https://x/y.git", name="..")
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)

    def test_saved_into_referenced_document(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path)
        assert isinstance(manager.add_repo_simple("https://github.com/acme/mobile.git", parent="/team"), Ok)
        assert _names(tmp_path / "team.yaml") == ["web", "mobile"]
        assert _names(tmp_path / "muno.yaml") == ["backend", "team", "platform"]
        root_doc = load_document(tmp_path / "muno.yaml").unwrap()
        assert root_doc.nodes[1].file == "team.yaml"

    def test_referenced_document_gets_no_workspace_section(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path)
        assert isinstance(manager.add_repo_simple("https://github.com/acme/mobile.git", parent="/team"), Ok)
        saved = (tmp_path / "team.yaml").read_text(encoding="utf-8")
        assert "workspace" not in saved
        assert "name: acme" in (tmp_path / "muno.yaml").read_text(encoding="utf-8")


class TestRemove:
    def test_removes_from_document(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path)
        assert manager.remove_node("/backend/payments") == Ok("/backend/payments")
        document = load_document(tmp_path / "muno.yaml").unwrap()
        assert document.nodes[0].nodes == ()

    def test_delete_files_and_clear_position(self, tmp_path: Path) -> None:
        manager, _, position = _manager(tmp_path)
        manager.use_node("/backend/payments")
        directory = tmp_path / "repos" / "backend" / "payments"
        assert directory.is_dir()

        assert manager.remove_node("/backend", delete_files=True) == Ok("/backend")

        assert not (tmp_path / "repos" / "backend").exists()
        assert position.get() is None
        assert _names(tmp_path / "muno.yaml") == ["team", "platform"]

    def test_position_elsewhere_is_kept(self, tmp_path: Path) -> None:
        manager, _, position = _manager(tmp_path, position=MemoryPositionStore("/team/web"))
        manager.remove_node("/backend")
        assert position.get() == "/team/web"

    def test_root_cannot_be_removed(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path)
        result = manager.remove_node("/")
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)


class TestBatchOperations:
    def test_status_of_subtree(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path)
        manager.use_node("/backend/payments")
        report = manager.status_node("/backend").unwrap()
        assert [(r.path, r.outcome) for r in report.results] == [
            ("/backend", Outcome.SKIPPED),
            ("/backend/payments", Outcome.SUCCESS),
        ]

    def test_empty_commit_message(self, tmp_path: Path) -> None:
        manager, git, _ = _manager(tmp_path)
        result = manager.commit_node("/", "   ")
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert git.calls == []

    def test_list_is_direct_children_by_default(self, tmp_path: Path) -> None:
        manager, _, _ = _manager(tmp_path)
        report = manager.list_nodes("/").unwrap()
        assert [r.path for r in report.results] == ["/", "/backend", "/team", "/platform"]
