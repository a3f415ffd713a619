"""Reduction of per-metric point buffers into typed summaries."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from loadlens._internal.logging import get_logger
from loadlens.metrics.models import (
    CounterSummary,
    GaugeSummary,
    MetricType,
    RateSummary,
    TimeSeriesPoint,
    TrendSummary,
    is_number,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from loadlens.metrics.models import DataPoint, MetricDefinition, MetricSummary

logger = get_logger("metrics.reducer")

P95 = 0.95


def _native(value: object) -> int | float:
    """Unwrap numpy scalars so summaries hold plain Python numbers."""
    if isinstance(value, np.generic):
        return value.item()  # type: ignore[no-any-return]
    return value  # type: ignore[return-value]


def _total(values: Sequence[int | float]) -> int | float:
    # Integer sums are exact; fsum keeps float sums independent of order.
    if all(isinstance(v, int) for v in values):
        return sum(values)
    return math.fsum(values)


def nearest_rank(sorted_values: Sequence[int | float] | np.ndarray, fraction: float) -> int | float:
    """Return the nearest-rank percentile of an ascending sequence.

    The rank is ``ceil(n * fraction) - 1``, clamped at 0. No interpolation
    is performed, so the result is always one of the observed values.

    Args:
        sorted_values: Non-empty values in ascending order.
        fraction: Percentile as a fraction (0.95 for p95).

    Returns:
        The value at the computed rank.
    """
    index = max(math.ceil(len(sorted_values) * fraction) - 1, 0)
    return _native(sorted_values[index])


def reduce_counter(points: Sequence[DataPoint]) -> CounterSummary:
    return CounterSummary(count=_total([p.numeric_value for p in points]))


def reduce_gauge(points: Sequence[DataPoint]) -> GaugeSummary:
    """Highest value seen, not the last one."""
    return GaugeSummary(value=max((p.numeric_value for p in points), default=0))


def reduce_rate(points: Sequence[DataPoint]) -> RateSummary:
    """Count exact 1s as passes and exact 0s as fails; ignore anything else."""
    passes = sum(1 for p in points if is_number(p.value) and p.value == 1)
    fails = sum(1 for p in points if is_number(p.value) and p.value == 0)
    total = passes + fails
    return RateSummary(passes=passes, fails=fails, rate=passes / total if total > 0 else 0.0)


def reduce_trend(points: Sequence[DataPoint], *, include_time_series: bool = False) -> TrendSummary:
    """Compute min/max/avg/p95 over a trend metric's values.

    Args:
        points: The metric's points in arrival order.
        include_time_series: Also emit the per-point series used by charts.
            The series keeps arrival order and is only produced when at
            least one point carries a time.

    Returns:
        The trend summary; every statistic is None when there are no points.
    """
    if not points:
        return TrendSummary()

    arr = np.sort(np.asarray([p.numeric_value for p in points]))

    time_series: tuple[TimeSeriesPoint, ...] | None = None
    if include_time_series and any(p.has_time for p in points):
        time_series = tuple(
            TimeSeriesPoint(time=p.timestamp_ms, value=p.numeric_value, tags=p.tags) for p in points
        )

    return TrendSummary(
        min=_native(arr[0]),
        max=_native(arr[-1]),
        avg=float(np.mean(arr)),
        p95=nearest_rank(arr, P95),
        time_series=time_series,
    )


def reduce_metric(
    metric_type: MetricType | None,
    points: Sequence[DataPoint],
    *,
    include_time_series: bool = False,
) -> MetricSummary | None:
    """Summarise one metric's points according to its declared type.

    Args:
        metric_type: The declared type, or None if the tag was unrecognised.
        points: The metric's points in arrival order (may be empty).
        include_time_series: Forwarded to the trend reduction.

    Returns:
        The typed summary, or None for unrecognised types.
    """
    if metric_type is MetricType.COUNTER:
        return reduce_counter(points)
    if metric_type is MetricType.GAUGE:
        return reduce_gauge(points)
    if metric_type is MetricType.RATE:
        return reduce_rate(points)
    if metric_type is MetricType.TREND:
        return reduce_trend(points, include_time_series=include_time_series)
    return None


def reduce_metrics(
    definitions: Mapping[str, MetricDefinition],
    points: Mapping[str, Sequence[DataPoint]],
    *,
    include_time_series: bool = False,
) -> dict[str, MetricSummary]:
    """Summarise every defined metric.

    Metrics with points but no definition are left out, as are metrics
    whose declared type is not one of the four known kinds.

    Args:
        definitions: Metric definitions keyed by name.
        points: Point buffers keyed by metric name.
        include_time_series: Emit chart series for trend metrics.

    Returns:
        Summaries keyed by metric name, in definition order.
    """
    summaries: dict[str, MetricSummary] = {}
    for name, definition in definitions.items():
        summary = reduce_metric(
            definition.metric_type,
            points.get(name, ()),
            include_time_series=include_time_series,
        )
        if summary is None:
            logger.debug("No summary for metric %r with unrecognised type %r", name, definition.type)
            continue
        summaries[name] = summary
    return summaries
