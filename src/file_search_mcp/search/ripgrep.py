"""ripgrep subprocess wrapper producing per-file ordered line matches."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field

from file_search_mcp.bounding import LineMatch, MatchRecord

logger = logging.getLogger(__name__)

RIPGREP_EXECUTABLE = "rg"
MAX_COUNT_PER_FILE = 50
DEFAULT_MAX_RESULTS = 1_000

INSTALL_GUIDANCE = (
    "ripgrep (rg) is not installed. Please install it:\n"
    "  macOS: brew install ripgrep\n"
    "  Ubuntu: apt install ripgrep\n"
    "  Windows: choco install ripgrep"
)

Runner = Callable[..., subprocess.CompletedProcess[str]]


class RipgrepError(Exception):
    """Raised when ripgrep fails without producing usable output."""


class RipgrepNotInstalledError(RipgrepError):
    """Raised when the rg executable cannot be found."""

    def __init__(self) -> None:
        super().__init__(INSTALL_GUIDANCE)


@dataclass(slots=True, frozen=True)
class RipgrepOptions:
    """Arguments for one content search."""

    query: str
    path: str
    file_pattern: str | None = None
    ignore_gitignore: bool = True
    include_hidden: bool = True
    exclude: tuple[str, ...] = field(default_factory=tuple)
    context_lines: int = 2
    max_results: int = DEFAULT_MAX_RESULTS
    smart_case: bool = True
    timeout_seconds: float | None = None


def build_ripgrep_args(options: RipgrepOptions) -> list[str]:
    """Translate options into an rg command line."""
    args = [RIPGREP_EXECUTABLE, "--json", "--line-number"]
    if options.smart_case:
        args.append("--smart-case")
    if options.context_lines > 0:
        args.extend(["-C", str(options.context_lines)])
    args.extend(["--max-count", str(MAX_COUNT_PER_FILE)])
    if options.include_hidden:
        args.append("--hidden")
    if not options.ignore_gitignore:
        args.append("--no-ignore")
    if options.file_pattern:
        args.extend(["--glob", options.file_pattern])
    for pattern in options.exclude:
        args.extend(["--glob", f"!{pattern}"])
    args.extend(["--glob", "!.git"])
    args.extend(["--regexp", options.query, "--", options.path])
    return args


def _decode_field(value: object) -> str | None:
    """Read an rg --json string field, which carries base64 "bytes" when not UTF-8."""
    if not isinstance(value, dict):
        return None
    text = value.get("text")
    if isinstance(text, str):
        return text
    encoded = value.get("bytes")
    if not isinstance(encoded, str):
        return None
    try:
        raw = base64.b64decode(encoded, validate=True)
    except binascii.Error:
        logger.debug("skipping rg event with malformed bytes field")
        return None
    return raw.decode("utf-8", errors="replace")


def _event_text(data: dict[str, object]) -> str | None:
    text = _decode_field(data.get("lines"))
    return None if text is None else text.rstrip("\r\n")


def _event_path(data: dict[str, object]) -> str | None:
    return _decode_field(data.get("path"))


def parse_ripgrep_json(
    output: str,
    context_lines: int = 0,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[MatchRecord]:
    """Group rg --json events into records, attaching surrounding context lines."""
    grouped: dict[str, list[LineMatch]] = {}
    pending: list[tuple[int, str]] = []
    last_match: LineMatch | None = None
    last_path: str | None = None
    total = 0

    for raw_line in output.splitlines():
        if total >= max_results:
            break
        if not raw_line.strip():
            continue
        try:
            event = json.loads(raw_line)
        except json.JSONDecodeError:
            continue
        if not isinstance(event, dict):
            continue
        kind = event.get("type")
        data = event.get("data")
        if not isinstance(data, dict):
            continue
        if kind in ("begin", "end"):
            pending = []
            last_match = None
            last_path = None
            continue
        path = _event_path(data)
        line_number = data.get("line_number")
        text = _event_text(data)
        if path is None or not isinstance(line_number, int) or text is None:
            continue
        if path != last_path:
            pending = []
            last_match = None
            last_path = path

        if kind == "context":
            if (
                last_match is not None
                and last_match.context_after is not None
                and 0 < line_number - last_match.line_number <= context_lines
            ):
                last_match.context_after.append(text)
            pending.append((line_number, text))
            continue
        if kind != "match":
            continue

        match = LineMatch(line_number=line_number, content=text)
        if context_lines > 0:
            match.context_before = [
                before for number, before in pending if 0 < line_number - number <= context_lines
            ]
            match.context_after = []
        pending = []
        last_match = match
        grouped.setdefault(path, []).append(match)
        total += 1

    return [MatchRecord(path=path, matches=matches) for path, matches in grouped.items()]


def search_with_ripgrep(
    options: RipgrepOptions,
    runner: Runner = subprocess.run,
) -> list[MatchRecord]:
    """Run rg and return per-file matches in engine order."""
    args = build_ripgrep_args(options)
    try:
        completed = runner(
            args,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=options.timeout_seconds,
            check=False,
        )
    except FileNotFoundError as error:
        raise RipgrepNotInstalledError() from error
    except subprocess.TimeoutExpired as error:
        raise RipgrepError(f"ripgrep timed out after {options.timeout_seconds}s") from error

    if completed.returncode not in (0, 1):
        stderr = (completed.stderr or "").strip()
        if not completed.stdout:
            raise RipgrepError(f"ripgrep exited with code {completed.returncode}: {stderr}")
        # rg exits 2 when some files were unreadable but still reports the rest.
        logger.warning("ripgrep exited with code %d: %s", completed.returncode, stderr)
    return parse_ripgrep_json(
        completed.stdout or "",
        context_lines=options.context_lines,
        max_results=options.max_results,
    )
