"""Websocket fan-out of aggregated snapshots to dashboard subscribers."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from aiohttp import WSCloseCode

from loadlens._internal.logging import get_logger
from loadlens.live.cache import LatestResultCache

if TYPE_CHECKING:
    from aiohttp import web

    from loadlens.metrics.models import AggregatedResult

logger = get_logger("live.broadcaster")

# Event name existing dashboard clients listen for.
RESULTS_EVENT = "results-update"


def encode_update(result: AggregatedResult) -> str:
    """Serialize a snapshot as a ``results-update`` push message.

    Args:
        result: Snapshot to send.

    Returns:
        JSON text of ``{"event": "results-update", "data": <snapshot>}``.
    """
    return json.dumps({"event": RESULTS_EVENT, "data": result.to_dict()})


class ResultsBroadcaster:
    """Pushes every new snapshot, whole, to all connected websockets.

    The broadcaster owns the latest-value cache: a subscriber that joins
    late is sent the cached snapshot straight away, and each publish
    replaces the cache before fanning out.

    Attributes:
        cache: Latest published snapshot.
    """

    def __init__(self, cache: LatestResultCache | None = None) -> None:
        """Initialize the broadcaster.

        Args:
            cache: Cache to publish into. A fresh one is created if omitted.
        """
        self.cache = cache if cache is not None else LatestResultCache()
        self._subscribers: set[web.WebSocketResponse] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, ws: web.WebSocketResponse) -> None:
        """Register a prepared websocket and send it the cached snapshot."""
        self._subscribers.add(ws)
        latest = self.cache.get()
        if latest is not None:
            await self._send(ws, encode_update(latest))

    def unsubscribe(self, ws: web.WebSocketResponse) -> None:
        self._subscribers.discard(ws)

    async def publish(self, result: AggregatedResult) -> None:
        """Cache ``result`` and send it to every subscriber.

        Subscribers whose connection has gone away are dropped.

        Args:
            result: The new snapshot; supersedes whatever was cached.
        """
        self.cache.set(result)
        message = encode_update(result)
        for ws in list(self._subscribers):
            await self._send(ws, message)
        logger.debug(
            "Published snapshot to %d subscriber(s)",
            len(self._subscribers),
            extra={"subscribers": len(self._subscribers)},
        )

    async def close(self) -> None:
        """Close every subscriber connection (server shutdown)."""
        for ws in list(self._subscribers):
            await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")
        self._subscribers.clear()

    async def _send(self, ws: web.WebSocketResponse, message: str) -> None:
        if ws.closed:
            self.unsubscribe(ws)
            return
        try:
            await ws.send_str(message)
        except (ConnectionError, RuntimeError) as exc:
            # RuntimeError: aiohttp refuses writes on a closing transport
            logger.warning("Dropping subscriber after failed send: %s", exc)
            self.unsubscribe(ws)
