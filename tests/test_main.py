from __future__ import annotations

import io
import os

import pytest

from pickora import main as cli


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    for key in ("KV_REST_API_URL", "KV_REST_API_TOKEN", "PICKORA_CONFIG"):
        monkeypatch.delenv(key, raising=False)
    for key in list(os.environ):
        if key.startswith(("SERVER_", "STORAGE_", "APP_")):
            monkeypatch.delenv(key, raising=False)


def run_cli(monkeypatch, *argv) -> int:
    monkeypatch.setattr("sys.argv", ["pickora", *argv])
    with pytest.raises(SystemExit) as exc_info:
        cli.main()
    return exc_info.value.code


def test_draw_from_file(tmp_path, monkeypatch, capsys):
    entries = tmp_path / "names.txt"
    entries.write_text("alice\n\n@bob\ncarol\n", encoding="utf-8")

    assert run_cli(monkeypatch, "draw", str(entries), "-n", "3") == 0

    out = capsys.readouterr().out
    assert "🎉 RAFFLE WINNERS" in out
    for position in (1, 2, 3):
        assert f"🏆 {position}. @" in out
    for name in ("@alice", "@bob", "@carol"):
        assert name in out
    assert "Result ID : " in out
    assert "KV not configured" in out
    assert "Picked with Pickora try it here" in out


def test_draw_from_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("solo\n"))

    assert run_cli(monkeypatch, "draw") == 0

    assert "🏆 1. @solo" in capsys.readouterr().out


def test_missing_file_exits_with_usage_error(tmp_path, monkeypatch, capsys):
    missing = tmp_path / "nope.txt"

    assert run_cli(monkeypatch, "draw", str(missing)) == 2

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "❌ Cannot read entries from" in captured.err
    assert "nope.txt" in captured.err


def test_too_many_winners_exits_with_usage_error(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("a\nb\n"))

    assert run_cli(monkeypatch, "draw", "-n", "5") == 2

    assert "❌ " in capsys.readouterr().err
