from __future__ import annotations

from pathlib import Path

from file_search_mcp.traversal import SymlinkTracker, create_symlink_tracker


def test_directory_is_accepted_once(tmp_path: Path) -> None:
    tracker = create_symlink_tracker()

    assert tracker.check_and_mark(tmp_path) is True
    assert tracker.check_and_mark(tmp_path) is False
    assert tracker.visited_count == 1


def test_link_back_to_ancestor_is_rejected(tmp_path: Path) -> None:
    parent = tmp_path / "a"
    parent.mkdir()
    loop = parent / "loop"
    loop.symlink_to(parent, target_is_directory=True)
    tracker = SymlinkTracker()

    assert tracker.check_and_mark(parent) is True
    assert tracker.check_and_mark(loop) is False


def test_second_link_to_same_target_is_rejected(tmp_path: Path) -> None:
    target = tmp_path / "target"
    target.mkdir()
    (tmp_path / "one").symlink_to(target, target_is_directory=True)
    (tmp_path / "two").symlink_to(target, target_is_directory=True)
    tracker = SymlinkTracker()

    assert tracker.check_and_mark(tmp_path / "one") is True
    assert tracker.check_and_mark(tmp_path / "two") is False


def test_dangling_link_is_rejected(tmp_path: Path) -> None:
    dangling = tmp_path / "dangling"
    dangling.symlink_to(tmp_path / "missing")
    tracker = SymlinkTracker()

    assert tracker.check_and_mark(dangling) is False
    assert tracker.visited_count == 0


def test_link_inspection_helpers(tmp_path: Path) -> None:
    target = tmp_path / "a"
    target.mkdir()
    nested = tmp_path / "b"
    nested.mkdir()
    link = nested / "up"
    link.symlink_to(Path("..") / "a", target_is_directory=True)
    tracker = SymlinkTracker()

    assert tracker.is_symlink(link) is True
    assert tracker.is_symlink(target) is False
    assert tracker.resolve_target(link) == target.absolute()
    assert tracker.resolve_target(target) is None


def test_reset_and_fresh_trackers_are_independent(tmp_path: Path) -> None:
    first = create_symlink_tracker()
    second = create_symlink_tracker()
    first.check_and_mark(tmp_path)

    assert second.check_and_mark(tmp_path) is True

    first.reset()
    assert first.visited_count == 0
    assert first.check_and_mark(tmp_path) is True
