from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from file_search_mcp.server import StdioServer, create_server


def _call(server: StdioServer, arguments: dict[str, object]) -> dict[str, object]:
    return server.handle_payload(
        {
            "id": "req-content",
            "method": "tools/call",
            "params": {"name": "search_content", "arguments": arguments},
        }
    )


def test_missing_ripgrep_is_reported_in_annotation(tmp_path: Path) -> None:
    def missing(args: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError(args[0])

    server = create_server(root=str(tmp_path), ripgrep_runner=missing)

    first = _call(server, {"query": "needle", "reasoning": "find needle"})
    second = _call(server, {"query": "needle", "reasoning": "find needle"})

    assert first["ok"] is True
    annotation = first["result"]["annotation"]
    assert annotation.startswith("find needle\n\nError: ripgrep (rg) is not installed")
    assert "brew install ripgrep" in annotation
    assert second["result"]["cached"] is False
    assert len(server.cache) == 0


@pytest.mark.skipif(shutil.which("rg") is None, reason="ripgrep not installed")
def test_content_search_finds_lines_with_context(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text(
        "import os\n\ndef main():\n    return os.getcwd()\n", encoding="utf-8"
    )
    (tmp_path / "README.md").write_text("nothing here\n", encoding="utf-8")
    server = create_server(root=str(tmp_path))

    response = _call(server, {"query": "def main", "context_lines": 1})

    lines = response["result"]["text"].split("\n")
    assert response["result"]["file_count"] == 1
    assert response["result"]["total_match_count"] == 1
    assert lines[3] == "src/app.py"
    assert "   L3: def main():" in lines


@pytest.mark.skipif(shutil.which("rg") is None, reason="ripgrep not installed")
def test_content_search_zero_results_suggest_simpler_query(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("alpha\n", encoding="utf-8")
    server = create_server(root=str(tmp_path))

    response = _call(server, {"query": "missingword|other"})

    assert response["result"]["file_count"] == 0
    assert 'Try searching for just "other" instead of the OR pattern' in (
        response["result"]["text"]
    )
