from __future__ import annotations

import importlib.util
import json
import sys
from pathlib import Path

import pytest

from file_search_mcp.metrics import JsonlMetricsRecorder, build_event


def _load_view_metrics_module():
    script_path = Path("scripts/view_metrics.py").resolve()
    spec = importlib.util.spec_from_file_location("view_metrics", script_path)
    assert spec is not None
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    loader = spec.loader
    assert loader is not None
    loader.exec_module(module)
    return module


def _seed(root: Path) -> None:
    recorder = JsonlMetricsRecorder(root / ".file_search_mcp" / "metrics.jsonl")
    recorder.record(
        build_event(
            tool="search_content",
            params={"query": "needle"},
            duration_ms=12,
            result_count=2,
            truncated=False,
        )
    )


def test_text_summary_lists_tools_and_queries(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    module = _load_view_metrics_module()
    _seed(tmp_path)

    exit_code = module.main(["--root", str(tmp_path)])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "Total calls: 1" in output
    assert "search_content" in output
    assert "avg 12ms" in output
    assert "needle" in output


def test_json_summary_and_empty_store(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    module = _load_view_metrics_module()

    assert module.main(["--root", str(tmp_path)]) == 0
    assert capsys.readouterr().out.strip() == "No tool calls recorded."

    _seed(tmp_path)
    assert module.main(["--root", str(tmp_path), "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["total_calls"] == 1
    assert payload["calls_by_tool"] == {"search_content": 1}
