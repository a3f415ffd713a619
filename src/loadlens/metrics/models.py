"""Typed records produced and consumed by the NDJSON aggregation engine."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Mapping

    from loadlens._internal.types import ErrorStatus, JsonDict

__all__ = [
    "AggregatedResult",
    "CounterSummary",
    "DataPoint",
    "ErrorOrigin",
    "ErrorRecord",
    "EventKind",
    "GaugeSummary",
    "MetricDefinition",
    "MetricSummary",
    "MetricType",
    "RateSummary",
    "RawEvent",
    "RootInfo",
    "TimeSeriesPoint",
    "TrendSummary",
    "is_number",
]

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)
# datetime.fromisoformat() stops at microseconds; k6 writes nanoseconds.
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def is_number(value: object) -> bool:
    """Return True for finite JSON numbers; ``bool``, NaN and infinities are not numbers."""
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, int) and not isinstance(value, bool)


def _timestamp_ms(raw: object) -> int | float:
    """Convert a point's ``time`` to epoch milliseconds (0 when unusable)."""
    if is_number(raw):
        return raw  # type: ignore[return-value]
    if not isinstance(raw, str) or not raw:
        return 0
    try:
        parsed = datetime.fromisoformat(_EXCESS_FRACTION.sub(r"\1", raw.strip()))
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return (parsed - _EPOCH) // _ONE_MS


class MetricType(Enum):
    """The four metric kinds the reducer knows how to summarise."""

    COUNTER = "counter"
    GAUGE = "gauge"
    RATE = "rate"
    TREND = "trend"

    @classmethod
    def parse(cls, tag: object) -> MetricType | None:
        """Return the member for a raw type tag, or None if unrecognised."""
        if not isinstance(tag, str):
            return None
        try:
            return cls(tag)
        except ValueError:
            return None


class EventKind(Enum):
    """Classifications a single NDJSON record can carry (not exclusive)."""

    METRIC_DEFINITION = "MetricDefinition"
    DATA_POINT = "DataPoint"
    ERROR_EVENT = "ErrorEvent"
    FAILED_REQUEST = "FailedRequest"


class ErrorOrigin(Enum):
    """Where an ErrorRecord came from."""

    EXPLICIT = "explicit"
    FAILED_REQUEST = "failed_request"


@dataclass(frozen=True)
class RawEvent:
    """One parsed NDJSON line.

    Attributes:
        kinds: Every classification the record matched.
        metric_name: The record's ``metric`` field, if it is a string.
        record_type: The record's ``type`` field, if present.
        payload: The record's ``data`` object (empty if absent or not an object).
    """

    kinds: frozenset[EventKind]
    metric_name: str | None
    record_type: str | None
    payload: Mapping[str, Any] = field(default_factory=dict)

    def has(self, kind: EventKind) -> bool:
        return kind in self.kinds


@dataclass(frozen=True)
class MetricDefinition:
    """Declared type of a metric; ``type`` is kept raw so unknown tags survive."""

    name: str
    type: object

    @property
    def metric_type(self) -> MetricType | None:
        return MetricType.parse(self.type)


@dataclass(frozen=True)
class DataPoint:
    """A single observation appended to a metric's point buffer.

    Attributes:
        value: Raw ``value`` from the payload; may be absent or non-numeric.
        time: Raw ``time`` from the payload, or None when unset.
        tags: Read-only tag mapping (empty when absent).
    """

    value: Any = None
    time: Any = None
    tags: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> DataPoint:
        """Build a point from a record's ``data`` object."""
        tags = payload.get("tags")
        return cls(
            value=payload.get("value"),
            time=payload.get("time"),
            tags=tags if isinstance(tags, dict) else {},
        )

    @property
    def numeric_value(self) -> int | float:
        """The value, or 0 when absent or non-numeric."""
        return self.value if is_number(self.value) else 0

    @property
    def has_time(self) -> bool:
        return bool(self.time)

    @property
    def timestamp_ms(self) -> int | float:
        """Epoch milliseconds of ``time``; 0 when unset or unparseable."""
        return _timestamp_ms(self.time)


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One entry of a trend metric's chart series."""

    time: int | float
    value: int | float
    tags: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> JsonDict:
        return {"time": self.time, "value": self.value, "tags": dict(self.tags)}


@dataclass(frozen=True)
class CounterSummary:
    """Running total of a counter metric."""

    type: ClassVar[MetricType] = MetricType.COUNTER

    count: int | float = 0

    def values(self) -> JsonDict:
        return {"count": self.count}


@dataclass(frozen=True)
class GaugeSummary:
    """Highest value observed for a gauge metric."""

    type: ClassVar[MetricType] = MetricType.GAUGE

    value: int | float = 0

    def values(self) -> JsonDict:
        return {"value": self.value}


@dataclass(frozen=True)
class RateSummary:
    """Pass/fail tally of a rate metric."""

    type: ClassVar[MetricType] = MetricType.RATE

    passes: int = 0
    fails: int = 0
    rate: float = 0.0

    def values(self) -> JsonDict:
        return {"passes": self.passes, "fails": self.fails, "rate": self.rate}


@dataclass(frozen=True)
class TrendSummary:
    """Distribution statistics of a trend metric.

    All statistics are None when the metric recorded no points.
    ``time_series`` is None unless a series was requested and at least
    one point carried a time.
    """

    type: ClassVar[MetricType] = MetricType.TREND

    min: int | float | None = None
    max: int | float | None = None
    avg: float | None = None
    p95: int | float | None = None
    time_series: tuple[TimeSeriesPoint, ...] | None = None

    def values(self) -> JsonDict:
        values: JsonDict = {
            key: stat
            for key, stat in (("min", self.min), ("max", self.max), ("avg", self.avg), ("p95", self.p95))
            if stat is not None
        }
        if self.time_series is not None:
            values["timeSeries"] = [point.to_dict() for point in self.time_series]
        return values


MetricSummary = CounterSummary | GaugeSummary | RateSummary | TrendSummary


@dataclass(frozen=True)
class ErrorRecord:
    """A failed-request occurrence shown in the errored-URL table.

    Attributes:
        url: Request URL (or scenario name for explicit error events).
        status: HTTP status, error code, or the literal "Error".
        message: Human-readable failure message.
        endpoint: Logical endpoint / request name.
        count: Number of occurrences (>= 1).
        origin: Whether the record came from an ``Error`` event or from
            an ``http_req_failed`` point.
    """

    url: str
    status: ErrorStatus
    message: str
    endpoint: str
    count: int = 1
    origin: ErrorOrigin = ErrorOrigin.EXPLICIT

    def to_dict(self) -> JsonDict:
        return {
            "url": self.url,
            "status": self.status,
            "message": self.message,
            "endpoint": self.endpoint,
            "count": self.count,
            "origin": self.origin.value,
        }


@dataclass(frozen=True)
class RootInfo:
    """Run-level counters gathered while scanning."""

    max_virtual_users: int = 0
    iteration_count: int = 0

    def to_dict(self) -> JsonDict:
        return {
            "maxVirtualUsers": self.max_virtual_users,
            "iterationCount": self.iteration_count,
        }


@dataclass(frozen=True)
class AggregatedResult:
    """Immutable snapshot handed to every report and dashboard consumer.

    Attributes:
        metrics: Read-only mapping of metric name to its summary.
        errored_urls: Explicit error events first, then failed-request
            entries, each in arrival order.
        root_info: Max virtual users and iteration count.
        processed_at: When the snapshot was assembled (aware, UTC).
    """

    metrics: Mapping[str, MetricSummary]
    errored_urls: tuple[ErrorRecord, ...]
    root_info: RootInfo
    processed_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))
        object.__setattr__(self, "errored_urls", tuple(self.errored_urls))

    def metric(self, name: str) -> MetricSummary | None:
        return self.metrics.get(name)

    @property
    def explicit_errors(self) -> tuple[ErrorRecord, ...]:
        return tuple(e for e in self.errored_urls if e.origin is ErrorOrigin.EXPLICIT)

    @property
    def failed_request_errors(self) -> tuple[ErrorRecord, ...]:
        return tuple(e for e in self.errored_urls if e.origin is ErrorOrigin.FAILED_REQUEST)

    def to_dict(self) -> JsonDict:
        """Return the JSON payload broadcast to dashboard subscribers."""
        processed_at = self.processed_at.astimezone(UTC).isoformat(timespec="milliseconds")
        return {
            "metrics": {
                name: {"type": summary.type.value, "values": summary.values()}
                for name, summary in self.metrics.items()
            },
            "erroredUrls": [error.to_dict() for error in self.errored_urls],
            "rootInfo": self.root_info.to_dict(),
            "processedAt": processed_at.replace("+00:00", "Z"),
        }
