"""Tests for muno.core.config."""

from __future__ import annotations

from pathlib import Path

import yaml

from muno.core.config import (
    DEFAULT_EAGER_MARKERS,
    DEFAULT_MAX_PARALLEL,
    Document,
    NodeDefinition,
    WorkspaceSettings,
    find_config_file,
    load_document,
    parse_document,
    save_document,
)
from muno.core.errors import ConfigError
from muno.core.result import Err, Ok


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


# =============================================================================
# Parsing
# =============================================================================


class TestParseDocument:
    """Tests for parse_document()."""

    def test_empty_document_gets_defaults(self, tmp_path: Path) -> None:
        """An empty document is valid and named after its directory."""
        result = parse_document(None, tmp_path / "platform" / "muno.yaml")
        assert isinstance(result, Ok)
        doc = result.value
        assert doc.nodes == ()
        assert doc.settings.name == "platform"
        assert doc.settings.repos_dir == "repos"
        assert doc.settings.eager_markers == DEFAULT_EAGER_MARKERS
        assert doc.settings.max_parallel == DEFAULT_MAX_PARALLEL

    def test_nodes_keep_declaration_order(self, tmp_path: Path) -> None:
        data = {"nodes": [{"name": "b", "url": "u1"}, {"name": "a", "url": "u2"}]}
        result = parse_document(data, tmp_path / "muno.yaml")
        assert isinstance(result, Ok)
        assert [n.name for n in result.value.nodes] == ["b", "a"]

    def test_config_alias_for_file(self, tmp_path: Path) -> None:
        data = {"nodes": [{"name": "team", "config": "team.yaml"}]}
        result = parse_document(data, tmp_path / "muno.yaml")
        assert isinstance(result, Ok)
        assert result.value.nodes[0].file == "team.yaml"

    def test_legacy_lazy_flag(self, tmp_path: Path) -> None:
        data = {"nodes": [{"name": "a", "url": "u", "lazy": True}, {"name": "b", "url": "u", "lazy": False}]}
        result = parse_document(data, tmp_path / "muno.yaml")
        assert isinstance(result, Ok)
        assert [n.fetch for n in result.value.nodes] == ["lazy", "eager"]

    def test_fetch_auto_means_unset(self, tmp_path: Path) -> None:
        data = {"nodes": [{"name": "a", "url": "u", "fetch": "AUTO"}]}
        result = parse_document(data, tmp_path / "muno.yaml")
        assert isinstance(result, Ok)
        assert result.value.nodes[0].fetch is None

    def test_inline_children(self, tmp_path: Path) -> None:
        data = {"nodes": [{"name": "backend", "nodes": [{"name": "api", "url": "u"}]}]}
        result = parse_document(data, tmp_path / "muno.yaml")
        assert isinstance(result, Ok)
        backend = result.value.nodes[0]
        assert backend.url is None
        assert backend.nodes[0].name == "api"

    def test_custom_defaults(self, tmp_path: Path) -> None:
        data = {
            "workspace": {"name": "acme", "repos_dir": "src"},
            "defaults": {"eager_markers": ["-Meta"], "max_parallel": 0},
        }
        result = parse_document(data, tmp_path / "muno.yaml")
        assert isinstance(result, Ok)
        settings = result.value.settings
        assert settings == WorkspaceSettings(name="acme", repos_dir="src", eager_markers=("-meta",), max_parallel=0)


class TestParseErrors:
    """Invalid documents are reported as ConfigError."""

    def _error(self, data: object, tmp_path: Path) -> ConfigError:
        result = parse_document(data, tmp_path / "muno.yaml")
        assert isinstance(result, Err)
        return result.error

    def test_root_must_be_mapping(self, tmp_path: Path) -> None:
        assert "mapping" in self._error(["a"], tmp_path).message

    def test_nodes_must_be_list(self, tmp_path: Path) -> None:
        assert "list" in self._error({"nodes": {"a": 1}}, tmp_path).message

    def test_name_required(self, tmp_path: Path) -> None:
        assert "name" in self._error({"nodes": [{"url": "u"}]}, tmp_path).message

    def test_name_with_slash(self, tmp_path: Path) -> None:
        assert "invalid node name" in self._error({"nodes": [{"name": "a/b"}]}, tmp_path).message

    def test_reserved_names(self, tmp_path: Path) -> None:
        for name in (".", "..", "~"):
            assert "invalid node name" in self._error({"nodes": [{"name": name}]}, tmp_path).message

    def test_url_and_file_exclusive(self, tmp_path: Path) -> None:
        error = self._error({"nodes": [{"name": "a", "url": "u", "file": "x.yaml"}]}, tmp_path)
        assert "both url and file" in error.message

    def test_file_and_inline_nodes_exclusive(self, tmp_path: Path) -> None:
        data = {"nodes": [{"name": "a", "file": "x.yaml", "nodes": [{"name": "b"}]}]}
        assert "exclusive" in self._error(data, tmp_path).message

    def test_duplicate_names(self, tmp_path: Path) -> None:
        data = {"nodes": [{"name": "a"}, {"name": "a"}]}
        assert "duplicate" in self._error(data, tmp_path).message

    def test_bad_fetch_value(self, tmp_path: Path) -> None:
        assert "fetch" in self._error({"nodes": [{"name": "a", "fetch": "sometimes"}]}, tmp_path).message

    def test_absolute_repos_dir(self, tmp_path: Path) -> None:
        assert "relative" in self._error({"workspace": {"repos_dir": "/abs"}}, tmp_path).message

    def test_negative_max_parallel(self, tmp_path: Path) -> None:
        assert "max_parallel" in self._error({"defaults": {"max_parallel": -1}}, tmp_path).message


# =============================================================================
# Files
# =============================================================================


class TestLoadAndSave:
    """Tests for load_document() / save_document()."""

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_document(tmp_path / "nope.yaml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "muno.yaml", "nodes: [unclosed\n")
        result = load_document(path)
        assert isinstance(result, Err)
        assert "YAML" in result.error.message
        assert result.error.path == path

    def test_save_then_load(self, tmp_path: Path) -> None:
        doc = Document(
            path=tmp_path / "muno.yaml",
            settings=WorkspaceSettings(name="acme"),
            nodes=(
                NodeDefinition(name="api", url="https://example.com/api.git", fetch="lazy"),
                NodeDefinition(name="team", file="team.yaml"),
            ),
        )
        assert isinstance(save_document(doc), Ok)

        raw = yaml.safe_load(doc.path.read_text(encoding="utf-8"))
        assert raw["workspace"]["name"] == "acme"
        assert "defaults" not in raw

        loaded = load_document(doc.path)
        assert isinstance(loaded, Ok)
        assert loaded.value.nodes == doc.nodes

    def test_workspace_section_kept_only_where_read(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "team.yaml", "nodes:\n  - name: web\n    url: https://x/web.git\n")
        loaded = load_document(path).unwrap()
        assert loaded.has_workspace is False

        assert isinstance(save_document(loaded), Ok)
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert list(raw) == ["nodes"]

    def test_save_reports_io_failure(self, tmp_path: Path) -> None:
        blocker = _write(tmp_path / "blocker", "")
        doc = Document(path=blocker / "muno.yaml")
        result = save_document(doc)
        assert isinstance(result, Err)
        assert result.error.io is True


class TestFindConfigFile:
    def test_prefers_muno_yaml(self, tmp_path: Path) -> None:
        _write(tmp_path / ".muno.yml", "")
        _write(tmp_path / "muno.yaml", "")
        assert find_config_file(tmp_path) == tmp_path / "muno.yaml"

    def test_alternatives(self, tmp_path: Path) -> None:
        _write(tmp_path / ".muno.yml", "")
        assert find_config_file(tmp_path) == tmp_path / ".muno.yml"

    def test_none(self, tmp_path: Path) -> None:
        assert find_config_file(tmp_path) is None
