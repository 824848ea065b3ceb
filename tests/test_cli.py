"""Tests for the command-line game loop."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from shogi_engine import cli


def _feed(monkeypatch: pytest.MonkeyPatch, lines: list[str]) -> None:
    it: Iterator[str] = iter(lines)
    monkeypatch.setattr("builtins.input", lambda _prompt="": next(it))


def test_quit_immediately(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _feed(monkeypatch, ["quit"])
    cli.main(["--ai", "random"])
    out = capsys.readouterr().out
    assert "本将棋" in out
    assert "Game aborted." in out


def test_bad_input_is_reprompted(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _feed(monkeypatch, ["moves", "zz", "7g7e", "7g7f", "quit"])
    cli.main(["--ai", "random"])
    out = capsys.readouterr().out
    assert "7g7f" in out
    assert "Cannot parse move" in out
    assert "Illegal move (invalid_move)" in out
    assert "先手: 7g7f" in out
    assert "後手: " in out


def test_computer_moves_first_when_human_is_gote(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _feed(monkeypatch, ["quit"])
    cli.main(["--side", "gote", "--level", "easy"])
    out = capsys.readouterr().out
    assert "先手: " in out
    assert "Game aborted." in out


def test_end_of_input_aborts(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def _eof(_prompt: str = "") -> str:
        raise EOFError

    monkeypatch.setattr("builtins.input", _eof)
    cli.main([])
    assert "Game aborted." in capsys.readouterr().out
