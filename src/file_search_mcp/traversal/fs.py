"""Best-effort filesystem helpers and parameter literal parsing.

Permission problems and vanished files are routine while walking a tree, so the
helpers here report them as an FsOutcome skip reason instead of raising.
"""

from __future__ import annotations

import errno
import os
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, Generic, Literal, TypeVar

T = TypeVar("T")

SkipReason = Literal["permission-denied", "not-found", "unreadable", "unsafe-traversal", "binary"]

BINARY_SNIFF_BYTES = 8000
PREVIEW_MAX_CHARS = 10_000
PREVIEW_TRUNCATION_MARKER = "\n... [truncated]"

BINARY_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {
        ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".svg", ".tiff",
        ".mp3", ".mp4", ".wav", ".avi", ".mov", ".mkv", ".webm", ".flac", ".ogg",
        ".zip", ".tar", ".gz", ".rar", ".7z", ".bz2", ".xz",
        ".exe", ".dll", ".so", ".dylib", ".bin", ".o", ".a",
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        ".ttf", ".otf", ".woff", ".woff2", ".eot",
        ".pyc", ".pyo", ".class", ".lock", ".wasm",
    }
)  # fmt: skip

SIZE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(\d+(?:\.\d+)?)\s*(B|KB|MB|GB|TB)?$", re.IGNORECASE
)
DURATION_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(\d+(?:\.\d+)?)\s*(m|h|d|w)?$", re.IGNORECASE)

SIZE_MULTIPLIERS: Final[dict[str, int]] = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}
DURATION_SECONDS: Final[dict[str, int]] = {
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}
_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


class InvalidParameterFormatError(ValueError):
    """Raised when a size or duration literal cannot be parsed."""

    def __init__(self, kind: str, value: str) -> None:
        super().__init__(f"Invalid {kind} format: {value}")
        self.kind = kind
        self.value = value


@dataclass(slots=True, frozen=True)
class FsOutcome(Generic[T]):
    """Value of a filesystem call, or the reason it was skipped."""

    value: T | None = None
    skip_reason: SkipReason | None = None

    @property
    def ok(self) -> bool:
        """Return True when the call produced a value."""
        return self.skip_reason is None


def _skip_reason_for(error: OSError) -> SkipReason:
    if isinstance(error, PermissionError):
        return "permission-denied"
    if isinstance(error, FileNotFoundError):
        return "not-found"
    if error.errno == errno.ELOOP:
        return "unsafe-traversal"
    return "unreadable"


def list_directory(path: str | os.PathLike[str]) -> FsOutcome[list[os.DirEntry[str]]]:
    """List a directory sorted by name."""
    try:
        with os.scandir(path) as entries:
            ordered = sorted(entries, key=lambda item: item.name)
    except OSError as error:
        return FsOutcome(skip_reason=_skip_reason_for(error))
    return FsOutcome(value=ordered)


def stat_path(path: str | os.PathLike[str]) -> FsOutcome[os.stat_result]:
    """Stat a path, following links."""
    try:
        return FsOutcome(value=os.stat(path))
    except OSError as error:
        return FsOutcome(skip_reason=_skip_reason_for(error))


def is_binary_path(path: str | os.PathLike[str]) -> bool:
    """Return True for extensions that are known to hold binary data."""
    return Path(path).suffix.lower() in BINARY_EXTENSIONS


def is_binary_content(sample: bytes) -> bool:
    """Return True when the leading bytes contain a NUL byte."""
    return b"\x00" in sample[:BINARY_SNIFF_BYTES]


def read_text_safe(
    path: str | os.PathLike[str], max_chars: int = PREVIEW_MAX_CHARS
) -> FsOutcome[str]:
    """Read a text file, skipping binaries and capping the decoded length."""
    if is_binary_path(path):
        return FsOutcome(skip_reason="binary")
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as error:
        return FsOutcome(skip_reason=_skip_reason_for(error))
    if is_binary_content(data):
        return FsOutcome(skip_reason="binary")
    content = data.decode("utf-8", errors="replace")
    if len(content) > max_chars:
        content = content[:max_chars] + PREVIEW_TRUNCATION_MARKER
    return FsOutcome(value=content)


def read_preview(path: str | os.PathLike[str], max_lines: int = 10) -> FsOutcome[str]:
    """Return the first max_lines lines of a text file."""
    outcome = read_text_safe(path)
    if outcome.value is None:
        return outcome
    return FsOutcome(value="\n".join(outcome.value.split("\n")[:max_lines]))


def format_size(size: int) -> str:
    """Format a byte count with a binary unit, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 B"
    scaled = float(size)
    index = 0
    while scaled >= 1024 and index < len(_SIZE_UNITS) - 1:
        scaled /= 1024
        index += 1
    text = f"{scaled:.1f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[index]}"


def format_modified(mtime: float) -> str:
    """Return an ISO-8601 UTC timestamp for a modification time."""
    stamp = datetime.fromtimestamp(mtime, tz=UTC).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def parse_size(value: str) -> int:
    """Parse a size literal such as '500KB' or '1.5 MB' into bytes."""
    match = SIZE_PATTERN.match(value.strip())
    if match is None:
        raise InvalidParameterFormatError("size", value)
    unit = (match.group(2) or "B").upper()
    return int(float(match.group(1)) * SIZE_MULTIPLIERS[unit])


def parse_duration(value: str) -> float:
    """Parse a duration literal such as '30m', '24h' or '7d' into seconds.

    A bare number is read as hours.
    """
    match = DURATION_PATTERN.match(value.strip())
    if match is None:
        raise InvalidParameterFormatError("duration", value)
    unit = (match.group(2) or "h").lower()
    return float(match.group(1)) * DURATION_SECONDS[unit]
