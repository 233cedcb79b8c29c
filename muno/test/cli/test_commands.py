"""Command-level tests: commands are called directly with a recording git."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

import muno.cli.commands.workspace as workspace_cmd
import muno.cli.context as context_module
from muno import __version__
from muno.cli.app import _main  # pyright: ignore[reportPrivateUsage]
from muno.cli.commands import git_ops, nodes
from muno.core.config import load_document
from muno.core.errors import ErrorCode
from muno.core.workspace import WORKSPACE_ENV_VAR
from muno.git.capability import RecordingGit

DOC = """\
workspace:
  name: acme
nodes:
  - name: docs
    url: https://github.com/acme/docs.git
  - name: api
    url: https://github.com/acme/api.git
"""


@pytest.fixture
def git(monkeypatch: pytest.MonkeyPatch) -> RecordingGit:
    recording = RecordingGit()
    monkeypatch.setattr(context_module, "GitCli", lambda: recording)
    monkeypatch.setattr(workspace_cmd, "GitCli", lambda: recording)
    return recording


@pytest.fixture
def ws(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, git: RecordingGit) -> Path:
    root = tmp_path / "ws"
    root.mkdir()
    (root / "muno.yaml").write_text(DOC, encoding="utf-8")
    monkeypatch.setenv(WORKSPACE_ENV_VAR, str(root))
    monkeypatch.delenv(context_module.VERBOSE_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    return root


def _exit_code(excinfo: pytest.ExceptionInfo[typer.Exit]) -> int:
    return excinfo.value.exit_code


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(typer.Exit) as excinfo:
        _main(version=True, workspace=None, verbose=False)
    assert _exit_code(excinfo) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_invalid_workspace_option(tmp_path: Path) -> None:
    with pytest.raises(typer.Exit) as excinfo:
        _main(version=False, workspace=tmp_path, verbose=False)
    assert _exit_code(excinfo) == int(ErrorCode.CONFIG_ERROR)


def test_init_without_clone(tmp_path: Path, git: RecordingGit) -> None:
    root = tmp_path / "fresh"
    root.mkdir()
    workspace_cmd.init(name="acme", path=root, no_clone=True)

    document = load_document(root / "muno.yaml").unwrap()
    assert document.settings.name == "acme"
    assert (root / "repos").is_dir()
    assert git.calls == []


def test_add_then_list(ws: Path, git: RecordingGit, capsys: pytest.CaptureFixture[str]) -> None:
    nodes.add("https://github.com/acme/ledger.git", name=None, lazy=True, eager=False, parent=None)
    assert [n.name for n in load_document(ws / "muno.yaml").unwrap().nodes] == ["docs", "api", "ledger"]
    assert git.calls == []

    capsys.readouterr()
    nodes.list_nodes(target=None, recursive=False)
    out = capsys.readouterr().out
    assert "/ledger" in out
    assert "(lazy)" in out


def test_add_conflicting_flags(ws: Path) -> None:
    with pytest.raises(typer.Exit) as excinfo:
        nodes.add("https://x/y.git", name=None, lazy=True, eager=True, parent=None)
    assert _exit_code(excinfo) == int(ErrorCode.USER_ERROR)


def test_tree(ws: Path, capsys: pytest.CaptureFixture[str]) -> None:
    nodes.tree(target=None, depth=0)
    out = capsys.readouterr().out
    assert "acme/" in out
    assert "docs (absent, lazy)" in out


def test_path_is_plain(ws: Path, capsys: pytest.CaptureFixture[str]) -> None:
    workspace_cmd.path(target="/docs", ensure=False, relative=False, of=None)
    assert capsys.readouterr().out.strip() == str(ws.resolve() / "repos" / "docs")


def test_path_of_directory(ws: Path, capsys: pytest.CaptureFixture[str]) -> None:
    workspace_cmd.path(target=None, ensure=False, relative=False, of=ws / "repos" / "api")
    assert capsys.readouterr().out.strip() == "/api"


def test_use_unknown_node(ws: Path, git: RecordingGit) -> None:
    with pytest.raises(typer.Exit) as excinfo:
        workspace_cmd.use("/nowhere")
    assert _exit_code(excinfo) == int(ErrorCode.USER_ERROR)
    assert not (ws / ".muno" / "current").exists()


def test_use_persists_position(ws: Path, git: RecordingGit, capsys: pytest.CaptureFixture[str]) -> None:
    workspace_cmd.use("docs")
    assert (ws / ".muno" / "current").read_text(encoding="utf-8") == "/docs\n"
    assert git.count("clone") == 1

    capsys.readouterr()
    workspace_cmd.current()
    assert "/docs" in capsys.readouterr().out


def test_pull_failure_exit_code(ws: Path, git: RecordingGit) -> None:
    (ws / "repos" / "docs" / ".git").mkdir(parents=True)
    (ws / "repos" / "api" / ".git").mkdir(parents=True)
    git.fail.add("api")

    with pytest.raises(typer.Exit) as excinfo:
        git_ops.pull(target="/", recursive=True, force=False, all_repos=False, include_lazy=True, parallel=0)

    assert _exit_code(excinfo) == int(ErrorCode.GIT_ERROR)
    assert git.count("pull") == 2


def test_missing_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, git: RecordingGit) -> None:
    monkeypatch.delenv(WORKSPACE_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    with pytest.raises(typer.Exit) as excinfo:
        git_ops.status(target=None, recursive=False)
    assert _exit_code(excinfo) == int(ErrorCode.CONFIG_ERROR)
