from __future__ import annotations

from pathlib import Path

import pytest

from file_search_mcp.server import StdioServer, create_server


def _server(root: Path) -> StdioServer:
    return create_server(root=str(root), data_dir=str(root / ".data"))


def _call(server: StdioServer, name: str, arguments: dict[str, object]) -> dict[str, object]:
    return server.handle_payload(
        {"id": "req-args", "method": "tools/call", "params": {"name": name, "arguments": arguments}}
    )


@pytest.mark.parametrize(
    ("name", "arguments", "message"),
    [
        ("search_files", {}, "search_files pattern must be a non-empty string."),
        ("search_files", {"pattern": "  "}, "search_files pattern must be a non-empty string."),
        (
            "search_files",
            {"pattern": "*", "detail_level": "verbose"},
            "search_files detail_level must be one of: minimal, standard, full.",
        ),
        (
            "search_files",
            {"pattern": "*", "exclude": "node_modules"},
            "search_files exclude must be a list of strings.",
        ),
        (
            "search_files",
            {"pattern": "*", "ignore_gitignore": "no"},
            "search_files ignore_gitignore must be a boolean.",
        ),
        ("search_files", {"pattern": "*", "min_size": "lots"}, "Invalid size format: lots"),
        (
            "search_files",
            {"pattern": "*", "modified_within": "soon"},
            "Invalid duration format: soon",
        ),
        (
            "search_content",
            {"query": "x", "context_lines": "3"},
            "search_content context_lines must be an integer.",
        ),
        (
            "search_content",
            {"query": "x", "context_lines": 11},
            "search_content context_lines must be between 0 and 10.",
        ),
        (
            "search_content",
            {"query": "x", "include_hidden": "yes"},
            "search_content include_hidden must be a boolean.",
        ),
        ("fuzzy_find", {"query": 5}, "fuzzy_find query must be a non-empty string."),
        ("tree", {"depth": 0}, "tree depth must be between 1 and 10."),
        ("tree", {"depth": 11}, "tree depth must be between 1 and 10."),
        ("tree", {"path": 3}, "tree path must be a string."),
    ],
)
def test_invalid_arguments_return_invalid_params(
    tmp_path: Path, name: str, arguments: dict[str, object], message: str
) -> None:
    response = _call(_server(tmp_path), name, arguments)

    assert response["ok"] is False
    assert response["error"] == {"code": "INVALID_PARAMS", "message": message}


def test_missing_directory_is_invalid_params(tmp_path: Path) -> None:
    response = _call(_server(tmp_path), "tree", {"path": "does/not/exist"})

    assert response["error"] == {
        "code": "INVALID_PARAMS",
        "message": "path is not a directory: does/not/exist",
    }


def test_cached_response_text_is_marked(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    server = _server(tmp_path)

    first = _call(server, "search_files", {"pattern": "*.txt"})
    second = _call(server, "search_files", {"pattern": "*.txt", "reasoning": "again"})

    assert first["result"]["cached"] is False
    assert not first["result"]["text"].startswith("[cached] ")
    assert second["result"]["cached"] is True
    assert second["result"]["text"].startswith("[cached] Found 1 match(es) in 1 file(s)")


def test_cache_stats_and_metrics_summary_tools(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    server = _server(tmp_path)
    _call(server, "search_files", {"pattern": "*.txt"})
    _call(server, "search_files", {"pattern": "*.txt"})

    stats = _call(server, "cache_stats", {})
    summary = _call(server, "metrics_summary", {})

    assert stats["result"]["stats"] == {"hits": 1, "misses": 1, "size": 1, "hit_rate": 0.5}
    assert stats["result"]["ttl_seconds"] == 300.0
    assert summary["result"]["enabled"] is True
    assert summary["result"]["summary"]["calls_by_tool"] == {"search_files": 2}
    assert summary["result"]["summary"]["cache_hit_rate"] == 0.5
