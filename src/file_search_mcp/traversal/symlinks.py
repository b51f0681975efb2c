"""Loop detection for one directory traversal."""

from __future__ import annotations

import os
from pathlib import Path

StrPath = str | os.PathLike[str]


class SymlinkTracker:
    """Records visited (device, inode) identities and resolved link targets.

    A tracker belongs to exactly one traversal. Sharing it across unrelated
    traversals would report independent visits of the same directory as loops.
    """

    def __init__(self) -> None:
        self._identities: set[tuple[int, int]] = set()
        self._real_paths: set[str] = set()

    def check_and_mark(self, path: StrPath) -> bool:
        """Return True when path is safe to descend into, recording it as visited."""
        try:
            stat = os.stat(path)
        except OSError:
            return False
        identity = (stat.st_dev, stat.st_ino)
        if identity in self._identities:
            return False
        self._identities.add(identity)

        if not os.path.islink(path):
            return True
        try:
            real_path = os.path.realpath(path, strict=True)
        except (OSError, RuntimeError):
            return False
        if real_path in self._real_paths:
            return False
        self._real_paths.add(real_path)
        return True

    def is_symlink(self, path: StrPath) -> bool:
        """Return True when path itself is a symbolic link."""
        return os.path.islink(path)

    def resolve_target(self, path: StrPath) -> Path | None:
        """Return the absolute link target of path, or None if it is not a readable link."""
        try:
            target = os.readlink(path)
        except OSError:
            return None
        return Path(os.path.normpath(Path(path).parent / target)).absolute()

    def reset(self) -> None:
        """Forget all recorded visits."""
        self._identities.clear()
        self._real_paths.clear()

    @property
    def visited_count(self) -> int:
        """Return how many distinct identities were recorded."""
        return len(self._identities)


def create_symlink_tracker() -> SymlinkTracker:
    """Return a fresh tracker for a new traversal."""
    return SymlinkTracker()
