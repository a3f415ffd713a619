"""Polling watcher that re-aggregates the results file when it changes."""

from __future__ import annotations

import asyncio
import contextlib
from enum import Enum, auto
from typing import TYPE_CHECKING

from loadlens._internal.errors import AggregationError, ResultsNotFoundError
from loadlens._internal.logging import get_logger
from loadlens.metrics.aggregator import aggregate_file

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from pathlib import Path

    from loadlens.metrics.models import AggregatedResult

logger = get_logger("live.watcher")

# (mtime_ns, size) of the results file.
_Signature = tuple[int, int]


class WatcherState(Enum):
    """Lifecycle states of a ResultsWatcher."""

    IDLE = auto()
    AWAITING_DATA = auto()
    WATCHING = auto()
    STOPPED = auto()


class ResultsWatcher:
    """Watches a results file and publishes a fresh snapshot on each change.

    The file is polled for a changed ``(mtime, size)`` signature. On a
    change, its full content is re-read and aggregated from scratch in a
    worker thread. Refreshes are serialized by a lock, and each one stats
    the file only after acquiring it, so a burst of changes collapses into
    a single pass over the newest content instead of queueing stale ones.

    A missing or empty file means "awaiting data": nothing is aggregated.
    A failed pass is logged and the last good snapshot stays published.

    Attributes:
        path: The NDJSON results file.
        poll_interval: Seconds between change checks.
    """

    def __init__(
        self,
        path: Path,
        on_result: Callable[[AggregatedResult], Awaitable[None]],
        *,
        poll_interval: float = 0.5,
        include_time_series: bool = True,
    ) -> None:
        """Initialize the watcher.

        Args:
            path: Results file to watch.
            on_result: Coroutine callback receiving each new snapshot.
            poll_interval: Seconds between change checks.
            include_time_series: Emit chart series for trend metrics.
        """
        self.path = path
        self.poll_interval = poll_interval
        self._on_result = on_result
        self._include_time_series = include_time_series

        self._state = WatcherState.IDLE
        self._signature: _Signature | None = None
        self._lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> WatcherState:
        return self._state

    def _stat(self) -> _Signature | None:
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        return (st.st_mtime_ns, st.st_size)

    def _await_data(self) -> None:
        if self._state is not WatcherState.AWAITING_DATA:
            logger.info("Waiting for results data at %s", self.path, extra={"path": self.path})
        self._state = WatcherState.AWAITING_DATA
        self._signature = None

    async def refresh(self, *, force: bool = False) -> AggregatedResult | None:
        """Re-aggregate the file if it changed since the last good pass.

        Args:
            force: Aggregate even if the signature is unchanged.

        Returns:
            The new snapshot, or None if nothing was published.
        """
        async with self._lock:
            try:
                signature = await asyncio.to_thread(self._stat)
            except OSError:
                logger.exception("Could not stat results file %s", self.path)
                return None

            if signature is None or signature[1] == 0:
                self._await_data()
                return None
            if not force and signature == self._signature:
                return None

            try:
                result = await asyncio.to_thread(
                    aggregate_file,
                    self.path,
                    include_time_series=self._include_time_series,
                )
            except ResultsNotFoundError:
                self._await_data()
                return None
            except AggregationError:
                logger.exception("Aggregation failed; keeping the last snapshot")
                return None

            self._signature = signature
            self._state = WatcherState.WATCHING
            logger.info("Results updated: %d metric(s)", len(result.metrics), extra={"path": self.path})
            await self._on_result(result)
            return result

    async def run(self) -> None:
        """Poll until ``stop()`` is called."""
        self._stop_event.clear()
        while not self._stop_event.is_set():
            try:
                await self.refresh()
            except Exception:
                logger.exception("Refreshing %s failed; polling continues", self.path)
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
        self._state = WatcherState.STOPPED

    def start(self) -> asyncio.Task[None]:
        """Start polling in a background task on the running loop."""
        if self._task is None or self._task.done():
            self._stop_event.clear()
            self._task = asyncio.create_task(self.run(), name="loadlens-watcher")
            logger.debug("Watcher started for %s", self.path)
        return self._task

    async def stop(self) -> None:
        """Stop polling and wait for an in-flight pass to finish."""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        self._state = WatcherState.STOPPED
        logger.debug("Watcher stopped")
