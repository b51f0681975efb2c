from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import pytest

from file_search_mcp.server import main


def test_main_serves_stdin_until_eof(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    request = {"id": "cli-1", "method": "search_files", "params": {"pattern": "*.txt"}}
    monkeypatch.setattr(sys, "stdin", io.StringIO(json.dumps(request) + "\n"))

    exit_code = main(["--root", str(tmp_path), "--cache-enabled", "false", "--log-level", "ERROR"])

    response = json.loads(capsys.readouterr().out.strip())
    assert exit_code == 0
    assert response["request_id"] == "cli-1"
    assert response["result"]["text"].split("\n")[3] == "a.txt"


def test_main_rejects_invalid_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "file_search.toml").write_text("[limits]\nmax_chars = -1\n", encoding="utf-8")
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))

    with pytest.raises(SystemExit) as error:
        main(["--root", str(tmp_path)])

    assert error.value.code == 2
