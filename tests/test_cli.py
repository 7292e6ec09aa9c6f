from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import pytest

from snippets import BRACES_MISSING_CLOSE, EXTRA_END, VALID_IF_ELSE
from syntax_search.cli import main


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_valid_file_exits_zero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "ok.rb", VALID_IF_ELSE)

    assert main([str(path)]) == 0
    assert f"No syntax error found in {path}" in capsys.readouterr().out


def test_invalid_file_exits_one(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "render.rb", EXTRA_END)

    assert main([str(path), "--no-color"]) == 1

    out = capsys.readouterr().out
    assert "Unmatched `end` detected" in out
    assert f"file: {path}" in out
    assert "❯ 5    end" in out
    assert "  6    if footer?" in out


def test_no_context_flag(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "render.rb", EXTRA_END)

    assert main([str(path), "--no-context"]) == 1

    out = capsys.readouterr().out
    assert "❯ 5    end" in out
    assert "if header?" not in out


def test_language_flag(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "load.js", BRACES_MISSING_CLOSE)

    assert main([str(path), "--language", "braces"]) == 1
    assert "if (item.ready) {" in capsys.readouterr().out


def test_reads_standard_input(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO(EXTRA_END))

    assert main(["-"]) == 1
    assert "file: <stdin>" in capsys.readouterr().out


def test_config_file_sets_defaults(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "load.js", BRACES_MISSING_CLOSE)
    config = _write(tmp_path, "search.json", json.dumps({"language": "braces", "context": False}))

    assert main([str(path), "--config", str(config)]) == 1

    out = capsys.readouterr().out
    assert "if (item.ready) {" in out
    assert "function load" not in out


def test_message_locates_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "render.rb", EXTRA_END)

    assert main(["--message", f"{path}:9: syntax error, unexpected `end'"]) == 1
    assert f"file: {path}" in capsys.readouterr().out


def test_message_without_file_fails(tmp_path: Path) -> None:
    assert main(["--message", f"{tmp_path / 'gone.rb'}:1: syntax error"]) == 2


def test_missing_file_exits_two(tmp_path: Path) -> None:
    assert main([str(tmp_path / "missing.rb")]) == 2


def test_invalid_config_exits_two(tmp_path: Path) -> None:
    path = _write(tmp_path, "ok.rb", VALID_IF_ELSE)
    config = _write(tmp_path, "bad.yaml", "language: cobol\n")

    assert main([str(path), "--config", str(config)]) == 2


def test_path_or_message_required() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2
