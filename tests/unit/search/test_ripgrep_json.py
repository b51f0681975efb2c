from __future__ import annotations

import base64
import json
import shutil
import subprocess
from pathlib import Path

import pytest

from file_search_mcp.search import (
    RipgrepError,
    RipgrepNotInstalledError,
    RipgrepOptions,
    build_ripgrep_args,
    parse_ripgrep_json,
    search_with_ripgrep,
)


def _event(kind: str, path: str, line_number: int | None = None, text: str = "") -> str:
    data: dict[str, object] = {"path": {"text": path}}
    if line_number is not None:
        data["line_number"] = line_number
        data["lines"] = {"text": f"{text}\n"}
    return json.dumps({"type": kind, "data": data})


def _stream(*events: str) -> str:
    return "\n".join(events) + "\n"


class CannedRunner:
    def __init__(self, returncode: int, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls: list[list[str]] = []

    def __call__(self, args: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        self.calls.append(args)
        return subprocess.CompletedProcess(args, self.returncode, self.stdout, self.stderr)


def test_build_args_include_filters_and_query() -> None:
    options = RipgrepOptions(
        query="TODO",
        path="/repo",
        file_pattern="*.py",
        ignore_gitignore=False,
        exclude=("node_modules",),
        context_lines=2,
    )

    assert build_ripgrep_args(options) == [
        "rg",
        "--json",
        "--line-number",
        "--smart-case",
        "-C",
        "2",
        "--max-count",
        "50",
        "--hidden",
        "--no-ignore",
        "--glob",
        "*.py",
        "--glob",
        "!node_modules",
        "--glob",
        "!.git",
        "--regexp",
        "TODO",
        "--",
        "/repo",
    ]


def test_zero_context_omits_context_flag() -> None:
    args = build_ripgrep_args(RipgrepOptions(query="x", path=".", context_lines=0))

    assert "-C" not in args
    assert "--no-ignore" not in args


def test_parse_groups_matches_per_file_with_context() -> None:
    output = _stream(
        _event("begin", "a.py"),
        _event("context", "a.py", 1, "before"),
        _event("match", "a.py", 2, "needle one"),
        _event("context", "a.py", 3, "after"),
        _event("end", "a.py"),
        _event("begin", "b.py"),
        _event("match", "b.py", 7, "needle two"),
        _event("end", "b.py"),
        json.dumps({"type": "summary", "data": {}}),
    )

    records = parse_ripgrep_json(output, context_lines=1)

    assert [record.path for record in records] == ["a.py", "b.py"]
    first = records[0].matches or []
    assert len(first) == 1
    assert first[0].line_number == 2
    assert first[0].content == "needle one"
    assert first[0].context_before == ["before"]
    assert first[0].context_after == ["after"]
    assert (records[1].matches or [])[0].context_before == []


def test_parse_without_context_leaves_context_fields_empty() -> None:
    output = _stream(_event("match", "a.py", 1, "x"))

    records = parse_ripgrep_json(output)

    match = (records[0].matches or [])[0]
    assert match.context_before is None
    assert match.context_after is None


def test_parse_caps_total_matches_and_skips_garbage() -> None:
    lines = ["not json"] + [_event("match", "a.py", number, "x") for number in range(1, 11)]

    records = parse_ripgrep_json(_stream(*lines), max_results=4)

    assert [match.line_number for match in records[0].matches or []] == [1, 2, 3, 4]


def test_no_matches_exit_code_returns_empty() -> None:
    runner = CannedRunner(returncode=1)

    assert search_with_ripgrep(RipgrepOptions(query="x", path="."), runner=runner) == []
    assert runner.calls[0][0] == "rg"


def test_missing_executable_raises_install_guidance() -> None:
    def runner(args: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError(args[0])

    with pytest.raises(RipgrepNotInstalledError, match="ripgrep \\(rg\\) is not installed"):
        search_with_ripgrep(RipgrepOptions(query="x", path="."), runner=runner)


def test_failure_without_output_raises() -> None:
    runner = CannedRunner(returncode=2, stderr="regex parse error")

    with pytest.raises(RipgrepError, match="regex parse error"):
        search_with_ripgrep(RipgrepOptions(query="(", path="."), runner=runner)


def test_partial_failure_with_output_is_parsed() -> None:
    runner = CannedRunner(
        returncode=2,
        stdout=_stream(_event("match", "ok.py", 3, "hit")),
        stderr="permission denied",
    )

    records = search_with_ripgrep(RipgrepOptions(query="hit", path="."), runner=runner)

    assert [record.path for record in records] == ["ok.py"]


def test_timeout_raises_ripgrep_error() -> None:
    def runner(args: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        raise subprocess.TimeoutExpired(args, 1.0)

    options = RipgrepOptions(query="x", path=".", timeout_seconds=1.0)
    with pytest.raises(RipgrepError, match="timed out"):
        search_with_ripgrep(options, runner=runner)


@pytest.mark.skipif(shutil.which("rg") is None, reason="ripgrep not installed")
def test_real_ripgrep_finds_content(tmp_path: Path) -> None:
    (tmp_path / "notes.txt").write_text("alpha\nneedle here\nomega\n", encoding="utf-8")

    records = search_with_ripgrep(
        RipgrepOptions(query="needle", path=str(tmp_path), context_lines=1)
    )

    assert len(records) == 1
    match = (records[0].matches or [])[0]
    assert match.line_number == 2
    assert match.content == "needle here"
    assert match.context_before == ["alpha"]
    assert match.context_after == ["omega"]


def test_non_utf8_lines_arrive_as_bytes_and_are_decoded() -> None:
    raw = "café ".encode("latin-1") + b"needle\n"
    event = {
        "type": "match",
        "data": {
            "path": {"bytes": base64.b64encode(b"latin\xe9.txt").decode("ascii")},
            "lines": {"bytes": base64.b64encode(raw).decode("ascii")},
            "line_number": 7,
        },
    }

    records = parse_ripgrep_json(json.dumps(event) + "\n")

    assert len(records) == 1
    assert records[0].path == "latin�.txt"
    assert records[0].matches is not None
    assert records[0].matches[0].line_number == 7
    assert records[0].matches[0].content == "caf� needle"
