"""Line-by-line classification of NDJSON telemetry records.

Each line of a k6-style results file is decoded and sorted into one or
more of the following tracks:

- metric definitions (``type == "Metric"``), last write wins;
- data points (``type == "Point"``, or no ``type`` but a ``metric``),
  appended per metric in arrival order;
- explicit error events (``type == "Error"`` with an ``error_code``),
  never deduplicated;
- failed requests (``http_req_failed`` points valued 1 with tags),
  deduplicated by URL.

A ``LineClassifier`` only lives for one aggregation pass.
"""

from __future__ import annotations

import json
import math
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loadlens._internal.logging import get_logger
from loadlens.metrics.models import (
    DataPoint,
    ErrorOrigin,
    ErrorRecord,
    EventKind,
    MetricDefinition,
    RawEvent,
    RootInfo,
    is_number,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from loadlens._internal.types import ErrorStatus

logger = get_logger("metrics.classifier")

VUS_MAX_METRIC = "vus_max"
ITERATIONS_METRIC = "iterations"
FAILED_REQUEST_METRIC = "http_req_failed"

UNKNOWN_URL = "Unknown URL"
UNKNOWN_ENDPOINT = "Unknown Endpoint"
DEFAULT_MESSAGE = "Request failed"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _reject_constant(token: str) -> float:
    msg = f"{token} is not a JSON number"
    raise ValueError(msg)


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        msg = f"number out of range: {text}"
        raise ValueError(msg)
    return value


def parse_int_prefix(value: object) -> int | None:
    """Parse an integer the way a lenient producer-side ``parseInt`` would.

    Numbers are truncated toward zero, strings contribute their leading
    integer (``"5"`` and ``"5 VUs"`` both give 5), anything else is None.
    """
    if is_number(value):
        return int(value)  # type: ignore[arg-type]
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return None


def _classify(record: Mapping[str, Any], payload: Mapping[str, Any]) -> frozenset[EventKind]:
    record_type = record.get("type")
    kinds: set[EventKind] = set()

    if record_type == "Metric":
        kinds.add(EventKind.METRIC_DEFINITION)
    # Some producers omit the "Point" tag entirely.
    if record_type == "Point" or (record.get("metric") and not record_type):
        kinds.add(EventKind.DATA_POINT)
    if record_type == "Error" and "error_code" in payload:
        kinds.add(EventKind.ERROR_EVENT)
    if (
        record.get("metric") == FAILED_REQUEST_METRIC
        and isinstance(payload.get("tags"), dict)
        and is_number(payload.get("value"))
        and payload.get("value") == 1
    ):
        kinds.add(EventKind.FAILED_REQUEST)

    return frozenset(kinds)


def parse_line(line: str, *, line_number: int | None = None) -> RawEvent | None:
    """Decode and classify a single NDJSON line.

    Args:
        line: One line of input text.
        line_number: 1-based position, used only for diagnostics.

    Returns:
        The classified event, or None for blank lines, invalid JSON
        (including ``NaN``/``Infinity`` tokens, numbers that overflow a
        float and nesting too deep to decode) and JSON values that are
        not objects.
    """
    stripped = line.strip()
    if not stripped:
        return None

    try:
        record = json.loads(stripped, parse_constant=_reject_constant, parse_float=_finite_float)
    except (ValueError, RecursionError) as exc:
        logger.warning(
            "Skipping invalid JSON line %s: %s",
            line_number if line_number is not None else "?",
            exc,
            extra={"line_number": line_number},
        )
        return None

    if not isinstance(record, dict):
        logger.debug("Skipping non-object JSON line %s", line_number)
        return None

    data = record.get("data")
    payload: Mapping[str, Any] = data if isinstance(data, dict) else {}
    metric = record.get("metric")
    record_type = record.get("type")

    return RawEvent(
        kinds=_classify(record, payload),
        metric_name=metric if isinstance(metric, str) else None,
        record_type=record_type if isinstance(record_type, str) else None,
        payload=payload,
    )


@dataclass
class _FailedRequestTally:
    status: ErrorStatus
    endpoint: str
    count: int = 1


class LineClassifier:
    """Accumulates classified records for one aggregation pass.

    Feed it every line of the input, then read the definitions, point
    buffers, error records and root counters. Nothing is summarised here;
    that is the reducer's job.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, MetricDefinition] = {}
        self._points: defaultdict[str, list[DataPoint]] = defaultdict(list)
        self._explicit_errors: list[ErrorRecord] = []
        # Keyed by URL; dict order is first-seen order.
        self._failed_requests: dict[str, _FailedRequestTally] = {}
        self._max_vus = 0
        self._lines_seen = 0
        self._lines_skipped = 0

    def feed(self, line: str) -> None:
        """Parse and accumulate one line of NDJSON text."""
        self._lines_seen += 1
        event = parse_line(line, line_number=self._lines_seen)
        if event is None:
            if line.strip():
                self._lines_skipped += 1
            return
        self.feed_event(event)

    def feed_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.feed(line)

    def feed_event(self, event: RawEvent) -> None:
        """Accumulate an already-parsed event into every matching track."""
        name = event.metric_name
        payload = event.payload

        if event.has(EventKind.METRIC_DEFINITION):
            if name is None:
                logger.debug("Ignoring metric definition without a name")
            else:
                self._definitions[name] = MetricDefinition(name=name, type=payload.get("type"))

        if event.has(EventKind.DATA_POINT):
            if name is None:
                logger.debug("Ignoring data point without a metric name")
            else:
                self._points[name].append(DataPoint.from_payload(payload))
                if name == VUS_MAX_METRIC:
                    vus = parse_int_prefix(payload.get("value"))
                    if vus is not None and vus > self._max_vus:
                        self._max_vus = vus

        if event.has(EventKind.ERROR_EVENT):
            self._explicit_errors.append(
                ErrorRecord(
                    url=payload.get("scenario") or payload.get("request_url") or UNKNOWN_URL,
                    status=payload.get("error_code"),
                    message=payload.get("error_message") or DEFAULT_MESSAGE,
                    endpoint=payload.get("endpoint") or name or "Unknown",
                    origin=ErrorOrigin.EXPLICIT,
                )
            )

        if event.has(EventKind.FAILED_REQUEST):
            tags = payload["tags"]
            url = tags.get("url") or UNKNOWN_URL
            if not isinstance(url, str):
                url = json.dumps(url)
            tally = self._failed_requests.get(url)
            if tally is None:
                self._failed_requests[url] = _FailedRequestTally(
                    status=tags.get("status") or "Error",
                    endpoint=tags.get("name") or UNKNOWN_ENDPOINT,
                )
            else:
                tally.count += 1

    @property
    def definitions(self) -> dict[str, MetricDefinition]:
        return dict(self._definitions)

    @property
    def points(self) -> dict[str, list[DataPoint]]:
        return {name: list(points) for name, points in self._points.items()}

    @property
    def explicit_errors(self) -> list[ErrorRecord]:
        return list(self._explicit_errors)

    @property
    def failed_request_errors(self) -> list[ErrorRecord]:
        return [
            ErrorRecord(
                url=url,
                status=tally.status,
                message=DEFAULT_MESSAGE,
                endpoint=tally.endpoint,
                count=tally.count,
                origin=ErrorOrigin.FAILED_REQUEST,
            )
            for url, tally in self._failed_requests.items()
        ]

    @property
    def root_info(self) -> RootInfo:
        return RootInfo(
            max_virtual_users=self._max_vus,
            iteration_count=len(self._points.get(ITERATIONS_METRIC, ())),
        )

    @property
    def lines_skipped(self) -> int:
        """Non-blank lines discarded as invalid JSON or non-object values."""
        return self._lines_skipped
