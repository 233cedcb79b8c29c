"""Tests for muno.output.console."""

from __future__ import annotations

import pytest

from muno.output.console import MockConsole, RichConsole, Style


class TestMockConsole:
    def test_labelled_messages(self) -> None:
        console = MockConsole()
        console.success("added /docs")
        console.error("boom")
        console.warning("careful")
        console.info("fyi")
        assert console.messages == ["OK added /docs", "error: boom", "warning: careful", "info: fyi"]
        assert console.has_error()
        assert console.has_warning()

    def test_styles_are_recorded(self) -> None:
        console = MockConsole()
        console.print("skip  /a  lazy", Style.DIM)
        console.print("plain")
        assert console.count(Style.DIM) == 1
        assert console.find("lazy")[0].style is Style.DIM

    def test_clear(self) -> None:
        console = MockConsole()
        console.print("x")
        console.clear()
        assert console.text == ""


class TestRichConsole:
    def test_markup_is_printed_literally(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.print("[bold]payments[/bold]")
        console.error("node [x] missing")
        out = capsys.readouterr().out
        assert "[bold]payments[/bold]" in out
        assert "error: node [x] missing" in out

    def test_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole(stderr=True).print("to stderr")
        captured = capsys.readouterr()
        assert "to stderr" in captured.err
        assert captured.out == ""
