"""Deterministic glob matching over a directory walk."""

from __future__ import annotations

import fnmatch
import logging
import re
from pathlib import Path

from file_search_mcp.traversal import create_symlink_tracker, list_directory

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILES = 10_000
_BRACE_PATTERN = re.compile(r"\{([^{}]*)\}")


def normalize_glob(pattern: str) -> str:
    """Make bare name patterns recursive, e.g. '*.py' -> '**/*.py'."""
    normalized = pattern.replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    if "/" not in normalized and "**" not in normalized:
        return f"**/{normalized}"
    return normalized


def expand_braces(pattern: str) -> list[str]:
    """Expand '{a,b}' alternatives, which fnmatch does not understand."""
    match = _BRACE_PATTERN.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    output: list[str] = []
    for option in match.group(1).split(","):
        output.extend(expand_braces(f"{head}{option}{tail}"))
    return output


def matches_glob(relative_path: str, patterns: list[str]) -> bool:
    """Return True when a relative posix path matches any expanded pattern."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatchcase(relative_path, pattern) or fnmatch.fnmatchcase(anchored, pattern)
        for pattern in patterns
    )


def is_excluded_name(name: str, relative_path: str, exclude: tuple[str, ...]) -> bool:
    """Return True when an entry name or relative path matches an exclude entry."""
    return any(
        fnmatch.fnmatchcase(name, pattern) or fnmatch.fnmatchcase(relative_path, pattern)
        for pattern in exclude
    )


def glob_files(
    base_dir: Path,
    pattern: str,
    *,
    include_hidden: bool = True,
    exclude: tuple[str, ...] = (),
    follow_symlinks: bool = True,
    max_files: int | None = DEFAULT_MAX_FILES,
) -> list[Path]:
    """Walk base_dir depth-first and return absolute paths of matching files.

    At most max_files paths are returned, in sorted order; None returns all.

    Directories are checked against a per-call SymlinkTracker before their
    children are listed, so link cycles are entered at most once. Unreadable
    directories contribute nothing.
    """
    root = base_dir.resolve()
    patterns = expand_braces(normalize_glob(pattern))
    tracker = create_symlink_tracker()
    found: list[Path] = []
    skipped = 0
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        if not tracker.check_and_mark(current):
            skipped += 1
            continue
        listing = list_directory(current)
        if listing.value is None:
            skipped += 1
            continue
        for entry in reversed(listing.value):
            if not include_hidden and entry.name.startswith("."):
                continue
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if is_excluded_name(entry.name, relative, exclude):
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=follow_symlinks)
                is_file = not is_dir and entry.is_file(follow_symlinks=follow_symlinks)
            except OSError:
                continue
            if is_dir:
                stack.append(full_path)
                continue
            if is_file and matches_glob(relative, patterns):
                found.append(full_path)
    if skipped:
        logger.debug("glob walk under %s skipped %d directories", root, skipped)
    found.sort(key=lambda item: item.relative_to(root).as_posix())
    return found if max_files is None else found[:max_files]


def read_gitignore(base_dir: Path) -> tuple[str, ...]:
    """Return exclude patterns from base_dir/.gitignore.

    Negations are not supported and anchored entries match at any depth.
    """
    try:
        text = (base_dir / ".gitignore").read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ()
    patterns: list[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("#", "!")):
            continue
        line = line.strip("/")
        if line:
            patterns.append(line)
    return tuple(patterns)
