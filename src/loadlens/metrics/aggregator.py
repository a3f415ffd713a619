"""Single-pass aggregation of NDJSON telemetry into an ``AggregatedResult``.

``aggregate`` is the one entry point shared by the batch report command
and the live dashboard. It is a pure function of its input text: no state
survives between calls, so the live path simply re-aggregates the full
file content whenever it changes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loadlens._internal.errors import AggregationError, ResultsNotFoundError
from loadlens._internal.logging import get_logger
from loadlens.metrics.classifier import LineClassifier
from loadlens.metrics.models import AggregatedResult
from loadlens.metrics.reducer import reduce_metrics

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = get_logger("metrics.aggregator")


def _utc_now() -> datetime:
    return datetime.now(UTC)


def aggregate(
    text: str | bytes,
    *,
    include_time_series: bool = False,
    clock: Callable[[], datetime] | None = None,
) -> AggregatedResult:
    """Aggregate raw NDJSON text into an immutable result.

    Args:
        text: Full NDJSON content. Bytes are decoded as UTF-8.
        include_time_series: Emit per-point chart series for trend metrics.
        clock: Source of the ``processed_at`` stamp. Defaults to the
            current UTC time.

    Returns:
        The aggregated snapshot.

    Raises:
        AggregationError: If ``text`` is bytes that are not valid UTF-8.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            msg = f"Results data is not valid UTF-8: {exc}"
            raise AggregationError(msg) from exc

    classifier = LineClassifier()
    # str.splitlines() would also break on U+2028 inside JSON strings
    classifier.feed_lines(text.split("\n"))

    if classifier.lines_skipped:
        logger.info("Skipped %d malformed line(s)", classifier.lines_skipped)

    metrics = reduce_metrics(
        classifier.definitions,
        classifier.points,
        include_time_series=include_time_series,
    )

    return AggregatedResult(
        metrics=metrics,
        errored_urls=(*classifier.explicit_errors, *classifier.failed_request_errors),
        root_info=classifier.root_info,
        processed_at=(clock or _utc_now)(),
    )


def aggregate_file(
    path: Path,
    *,
    include_time_series: bool = False,
    clock: Callable[[], datetime] | None = None,
) -> AggregatedResult:
    """Read a results file in full and aggregate it.

    Args:
        path: NDJSON results file.
        include_time_series: Emit per-point chart series for trend metrics.
        clock: Source of the ``processed_at`` stamp.

    Returns:
        The aggregated snapshot.

    Raises:
        ResultsNotFoundError: If the file does not exist.
        AggregationError: If the file cannot be read or decoded.
    """
    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        msg = f"Results file not found: {path}"
        raise ResultsNotFoundError(msg) from exc
    except OSError as exc:
        msg = f"Could not read results file {path}: {exc}"
        raise AggregationError(msg) from exc

    logger.debug("Aggregating %d bytes", len(raw), extra={"path": path})
    return aggregate(raw, include_time_series=include_time_series, clock=clock)
