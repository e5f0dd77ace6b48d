from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("textual")
from hexedit import cli  # noqa: E402
from hexedit.app import HexeditApp  # noqa: E402


@pytest.fixture()
def launched(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> list[HexeditApp]:
    apps: list[HexeditApp] = []
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr(HexeditApp, "run", lambda self: apps.append(self))
    return apps


def test_missing_file_exit_code(tmp_path: Path, launched: list[HexeditApp], capsys) -> None:
    assert cli.main([str(tmp_path / "missing.bin")]) == 2
    assert "file not found" in capsys.readouterr().err
    assert launched == []


def test_empty_file_exit_code(tmp_path: Path, launched: list[HexeditApp]) -> None:
    p = tmp_path / "empty.bin"
    p.write_bytes(b"")
    assert cli.main([str(p)]) == 1
    assert launched == []


def test_bad_config_exit_code(tmp_path: Path, launched: list[HexeditApp]) -> None:
    p = tmp_path / "d.bin"
    p.write_bytes(b"\x00")
    cfg = tmp_path / "config.yaml"
    cfg.write_text("view: {theme: neon}\n", encoding="utf-8")
    assert cli.main([str(p), "--config", str(cfg)]) == 1


def test_launches_with_offset_and_config(tmp_path: Path, launched: list[HexeditApp]) -> None:
    p = tmp_path / "d.bin"
    p.write_bytes(bytes(64))
    cfg = tmp_path / "config.yaml"
    cfg.write_text("view: {columns: 8, theme: dim}\n", encoding="utf-8")
    assert cli.main([str(p), "--offset", "0x10", "--config", str(cfg)]) == 0
    (app,) = launched
    assert app._start_offset == 16
    assert app.config.columns == 8
    assert app.history is not None


def test_invalid_offset_is_usage_error(tmp_path: Path, launched: list[HexeditApp]) -> None:
    p = tmp_path / "d.bin"
    p.write_bytes(b"\x00")
    with pytest.raises(SystemExit) as info:
        cli.main([str(p), "--offset", "nope"])
    assert info.value.code == 2
