from __future__ import annotations

import io
import json
from pathlib import Path

from file_search_mcp.server import StdioServer, create_server, encode_response


def _listed_paths(text: str) -> list[str]:
    body = text.split("\n\n", 1)[1]
    return [line for line in body.split("\n") if line and not line.startswith(" ")]


def _small_budget_server(root: Path, max_chars: int, reserve_chars: int) -> StdioServer:
    (root / "file_search.toml").write_text(
        f"[limits]\nmax_chars = {max_chars}\nreserve_chars = {reserve_chars}\n",
        encoding="utf-8",
    )
    return create_server(root=str(root), data_dir=str(root / ".data"))


def test_small_budget_truncates_and_stays_within_limit(tmp_path: Path) -> None:
    for index in range(200):
        (tmp_path / f"module_{index:03d}.py").write_text("pass\n", encoding="utf-8")
    server = _small_budget_server(tmp_path, 3000, 500)

    response = server.handle_payload(
        {
            "id": "req-budget",
            "method": "tools/call",
            "params": {"name": "search_files", "arguments": {"pattern": "*.py"}},
        }
    )

    result = response["result"]
    listed = _listed_paths(result["text"])
    assert len(json.dumps(response)) <= 3000
    assert len(encode_response(response)) <= 3000
    assert result["was_truncated"] is True
    assert 0 < result["file_count"] < 200
    assert listed == [f"module_{index:03d}.py" for index in range(result["file_count"])]
    assert "Results truncated to fit response size limit" in result["text"]


def test_every_written_line_fits_the_budget(tmp_path: Path) -> None:
    (tmp_path / "deep").mkdir()
    for index in range(120):
        (tmp_path / "deep" / f"entry_{index:03d}_ü.txt").write_text("x", encoding="utf-8")
    server = _small_budget_server(tmp_path, 2000, 500)
    requests = [
        {"id": "tree", "method": "tree", "params": {"depth": 3, "reasoning": "r" * 4000}},
        {"id": "files", "method": "search_files", "params": {"pattern": "*.txt"}},
        {"id": "fuzzy", "method": "fuzzy_find", "params": {"query": "entry"}},
    ]
    out_stream = io.StringIO()

    server.serve(
        in_stream=io.StringIO("".join(json.dumps(request) + "\n" for request in requests)),
        out_stream=out_stream,
    )
    lines = out_stream.getvalue().splitlines()

    assert len(lines) == 3
    for line in lines:
        response = json.loads(line)
        assert response["ok"] is True
        assert len(line) <= 2000
        assert response["result"]["was_truncated"] is True
