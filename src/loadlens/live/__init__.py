"""Live dashboard: results-file watching and websocket push updates.

The watcher re-aggregates the full results file on every change and hands
the snapshot to the broadcaster, which caches it and pushes it verbatim to
every connected subscriber as a single ``results-update`` event.
"""

from __future__ import annotations

from loadlens.live.broadcaster import RESULTS_EVENT, ResultsBroadcaster
from loadlens.live.cache import LatestResultCache
from loadlens.live.server import create_app, run_dashboard
from loadlens.live.watcher import ResultsWatcher, WatcherState

__all__ = [
    "RESULTS_EVENT",
    "LatestResultCache",
    "ResultsBroadcaster",
    "ResultsWatcher",
    "WatcherState",
    "create_app",
    "run_dashboard",
]
