from __future__ import annotations

import logging
import threading
import time

import pytest

from file_search_mcp.cache import CacheSweeper, QueryCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_sweep_once_removes_expired_entries() -> None:
    clock = FakeClock()
    cache: QueryCache[int] = QueryCache(ttl_seconds=1, max_entries=10, clock=clock)
    cache.set("a", 1)
    clock.now = 5
    sweeper = CacheSweeper(cache, interval_seconds=60)

    assert sweeper.sweep_once() == 1
    assert len(cache) == 0


def test_start_and_stop_are_idempotent() -> None:
    cache: QueryCache[int] = QueryCache()
    sweeper = CacheSweeper(cache, interval_seconds=0.01)

    sweeper.start()
    sweeper.start()
    assert sweeper.running is True

    sweeper.stop()
    sweeper.stop()
    assert sweeper.running is False


def test_background_thread_sweeps_on_interval() -> None:
    clock = FakeClock()
    cache: QueryCache[int] = QueryCache(ttl_seconds=1, max_entries=10, clock=clock)
    cache.set("a", 1)
    clock.now = 5
    sweeper = CacheSweeper(cache, interval_seconds=0.01)

    sweeper.start()
    try:
        deadline = time.monotonic() + 2.0
        while len(cache) and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        sweeper.stop()

    assert len(cache) == 0


def test_sweep_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    class BrokenCache(QueryCache[int]):
        def cleanup(self) -> int:
            raise RuntimeError("boom")

    sweeper = CacheSweeper(BrokenCache(), interval_seconds=60)

    with caplog.at_level(logging.WARNING):
        assert sweeper.sweep_once() == 0

    assert "cache sweep failed" in caplog.text


def test_non_positive_interval_is_rejected() -> None:
    with pytest.raises(ValueError, match="interval_seconds"):
        CacheSweeper(QueryCache(), interval_seconds=0)


def test_restart_waits_for_a_sweep_that_outlived_stop() -> None:
    entered = threading.Event()
    release = threading.Event()

    class SlowCache(QueryCache[int]):
        def cleanup(self) -> int:
            entered.set()
            release.wait(5.0)
            return 0

    sweeper = CacheSweeper(SlowCache(), interval_seconds=0.01)
    sweeper.start()
    try:
        assert entered.wait(2.0)
        sweeper.stop(timeout=0.05)
        assert sweeper.running is True

        sweeper.start()
        names = [thread.name for thread in threading.enumerate()]
        assert names.count("file-search-cache-sweeper") == 1
    finally:
        release.set()
        sweeper.stop()

    assert sweeper.running is False
