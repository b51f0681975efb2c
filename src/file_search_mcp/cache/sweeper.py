"""Background expiry sweep for a QueryCache."""

from __future__ import annotations

import logging
import threading
from typing import Any

from file_search_mcp.cache.query_cache import QueryCache

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


class CacheSweeper:
    """Runs QueryCache.cleanup on a fixed interval until stopped."""

    def __init__(
        self,
        cache: QueryCache[Any],
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._cache = cache
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Return True while the sweep thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sweep thread. Calling start on a running sweeper is a no-op."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="file-search-cache-sweeper",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the sweep thread to exit and wait for it.

        A thread still alive after the join keeps its reference, so start stays
        a no-op until it has exited.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("cache sweeper did not stop within %ss", timeout)
            return
        self._thread = None

    def sweep_once(self) -> int:
        """Run one sweep, logging instead of raising on failure."""
        try:
            removed = self._cache.cleanup()
        except Exception:
            logger.warning("cache sweep failed", exc_info=True)
            return 0
        if removed:
            logger.debug("cache sweep evicted %d expired entries", removed)
        return removed

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.sweep_once()
