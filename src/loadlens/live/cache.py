"""Thread-safe latest-value cache for the live push channel."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loadlens.metrics.models import AggregatedResult


class LatestResultCache:
    """Holds the most recent ``AggregatedResult`` for late-joining subscribers.

    Each refresh replaces the whole snapshot; snapshots are immutable, so
    readers never observe a half-updated value. A ``threading.Lock``
    guards the reference because aggregation runs in a worker thread.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._latest: AggregatedResult | None = None
        self._lock = threading.Lock()

    def set(self, result: AggregatedResult) -> None:
        """Replace the cached snapshot.

        Args:
            result: The newest aggregated result.
        """
        with self._lock:
            self._latest = result

    def get(self) -> AggregatedResult | None:
        """Return the cached snapshot.

        Returns:
            The latest result, or None if nothing has been published yet.
        """
        with self._lock:
            return self._latest
