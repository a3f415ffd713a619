"""Tests for ResultsBroadcaster with stand-in websockets."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from loadlens.live.broadcaster import RESULTS_EVENT, ResultsBroadcaster, encode_update
from loadlens.live.cache import LatestResultCache
from loadlens.metrics.models import AggregatedResult, CounterSummary, RootInfo


class _FakeSocket:
    def __init__(self, *, fail_with: Exception | None = None) -> None:
        self.sent: list[str] = []
        self.closed = False
        self.close_code: int | None = None
        self._fail_with = fail_with

    async def send_str(self, data: str) -> None:
        if self._fail_with is not None:
            raise self._fail_with
        self.sent.append(data)

    async def close(self, *, code: int, message: bytes) -> None:
        self.closed = True
        self.close_code = code


def _make_result(count: int) -> AggregatedResult:
    return AggregatedResult(
        metrics={"http_reqs": CounterSummary(count=count)},
        errored_urls=(),
        root_info=RootInfo(),
        processed_at=datetime(2024, 5, 1, tzinfo=UTC),
    )


def _count(message: str) -> Any:
    return json.loads(message)["data"]["metrics"]["http_reqs"]["values"]["count"]


class TestEncodeUpdate:
    def test_single_named_event_with_full_payload(self):
        result = _make_result(3)
        message = json.loads(encode_update(result))
        assert message == {"event": RESULTS_EVENT, "data": result.to_dict()}


class TestResultsBroadcaster:
    async def test_publish_updates_cache_and_subscribers(self):
        broadcaster = ResultsBroadcaster()
        a, b = _FakeSocket(), _FakeSocket()
        await broadcaster.subscribe(a)  # type: ignore[arg-type]
        await broadcaster.subscribe(b)  # type: ignore[arg-type]

        result = _make_result(1)
        await broadcaster.publish(result)

        assert broadcaster.cache.get() is result
        assert [_count(m) for m in a.sent] == [1]
        assert [_count(m) for m in b.sent] == [1]

    async def test_late_subscriber_gets_latest_only(self):
        broadcaster = ResultsBroadcaster()
        await broadcaster.publish(_make_result(1))
        await broadcaster.publish(_make_result(2))

        late = _FakeSocket()
        await broadcaster.subscribe(late)  # type: ignore[arg-type]

        assert [_count(m) for m in late.sent] == [2]

    async def test_subscriber_before_any_data_gets_nothing(self):
        broadcaster = ResultsBroadcaster()
        ws = _FakeSocket()
        await broadcaster.subscribe(ws)  # type: ignore[arg-type]
        assert ws.sent == []
        assert broadcaster.subscriber_count == 1

    async def test_failed_and_closed_subscribers_are_dropped(self):
        broadcaster = ResultsBroadcaster()
        healthy = _FakeSocket()
        broken = _FakeSocket(fail_with=ConnectionResetError("gone"))
        closed = _FakeSocket()
        for ws in (healthy, broken, closed):
            await broadcaster.subscribe(ws)  # type: ignore[arg-type]
        closed.closed = True

        await broadcaster.publish(_make_result(5))

        assert broadcaster.subscriber_count == 1
        assert [_count(m) for m in healthy.sent] == [5]

    async def test_unsubscribe(self):
        broadcaster = ResultsBroadcaster()
        ws = _FakeSocket()
        await broadcaster.subscribe(ws)  # type: ignore[arg-type]
        broadcaster.unsubscribe(ws)  # type: ignore[arg-type]
        await broadcaster.publish(_make_result(1))
        assert ws.sent == []

    async def test_close_disconnects_everyone(self):
        broadcaster = ResultsBroadcaster()
        sockets = [_FakeSocket(), _FakeSocket()]
        for ws in sockets:
            await broadcaster.subscribe(ws)  # type: ignore[arg-type]

        await broadcaster.close()

        assert all(ws.closed for ws in sockets)
        assert broadcaster.subscriber_count == 0

    def test_uses_supplied_cache(self):
        cache = LatestResultCache()
        assert ResultsBroadcaster(cache).cache is cache
