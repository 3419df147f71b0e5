from __future__ import annotations

from box_upload.upload.logger import DebugLogger


def test_info_is_silent_without_debug(mock_env_clear, capsys) -> None:
    DebugLogger().info("uploaded %s", "file.txt")
    assert capsys.readouterr().err == ""


def test_info_prints_when_debug_enabled(mock_env_clear, monkeypatch, capsys) -> None:
    monkeypatch.setenv("DEBUG", "box-upload")
    DebugLogger().info("uploaded %s parts", 3)
    assert capsys.readouterr().err == "box-upload: [info] uploaded 3 parts\n"


def test_debug_wildcard(mock_env_clear, monkeypatch, capsys) -> None:
    monkeypatch.setenv("DEBUG", "*")
    DebugLogger().info("ready")
    assert "box-upload: [info] ready" in capsys.readouterr().err


def test_errors_print_unless_disabled(mock_env_clear, capsys) -> None:
    DebugLogger().error("upload of %s failed", "file.txt")
    assert capsys.readouterr().err == "box-upload: [error] upload of file.txt failed\n"

    DebugLogger(enabled=False).error("hidden")
    assert capsys.readouterr().err == ""
