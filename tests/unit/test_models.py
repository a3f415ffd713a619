"""Tests for the aggregation data model."""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime
from typing import Any

import pytest

from loadlens.metrics.models import (
    AggregatedResult,
    CounterSummary,
    DataPoint,
    ErrorOrigin,
    ErrorRecord,
    MetricType,
    RootInfo,
    TimeSeriesPoint,
    TrendSummary,
    is_number,
)


def _result(**overrides: Any) -> AggregatedResult:
    fields: dict[str, Any] = {
        "metrics": {"http_reqs": CounterSummary(count=3)},
        "errored_urls": [ErrorRecord(url="https://x/a", status=500, message="Request failed", endpoint="a")],
        "root_info": RootInfo(max_virtual_users=4, iteration_count=9),
        "processed_at": datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=UTC),
    }
    fields.update(overrides)
    return AggregatedResult(**fields)


class TestIsNumber:
    @pytest.mark.parametrize("value", [0, -3, 2.5, 10**30])
    def test_finite_numbers(self, value: Any):
        assert is_number(value)

    @pytest.mark.parametrize("value", [True, False, None, "1", float("nan"), float("inf"), float("-inf")])
    def test_everything_else(self, value: Any):
        assert not is_number(value)

    def test_non_finite_value_reads_as_zero(self):
        assert DataPoint(value=float("nan")).numeric_value == 0


class TestMetricType:
    @pytest.mark.parametrize("tag", ["counter", "gauge", "rate", "trend"])
    def test_known(self, tag: str):
        assert MetricType.parse(tag) is MetricType(tag)

    @pytest.mark.parametrize("tag", ["Counter", "histogram", "", None, 1, ["trend"]])
    def test_unknown(self, tag: Any):
        assert MetricType.parse(tag) is None


class TestDataPoint:
    def test_from_payload_defaults(self):
        point = DataPoint.from_payload({})
        assert point.value is None
        assert point.time is None
        assert dict(point.tags) == {}
        assert point.numeric_value == 0
        assert not point.has_time

    def test_non_object_tags_are_dropped(self):
        assert dict(DataPoint.from_payload({"tags": "oops"}).tags) == {}

    def test_tags_are_read_only(self):
        point = DataPoint.from_payload({"tags": {"name": "a"}})
        with pytest.raises(TypeError):
            point.tags["name"] = "b"  # type: ignore[index]

    @pytest.mark.parametrize(
        ("time", "expected"),
        [
            ("1970-01-01T00:00:01Z", 1000),
            ("2024-05-01T10:00:00.250Z", 1714557600250),
            ("2024-05-01T12:00:00.250123456+02:00", 1714557600250),
            ("2024-05-01T10:00:00", 1714557600000),
            (1714557600250, 1714557600250),
            ("yesterday", 0),
            ("", 0),
            (None, 0),
        ],
    )
    def test_timestamp_ms(self, time: Any, expected: int):
        assert DataPoint(time=time).timestamp_ms == expected


class TestTrendSummary:
    def test_values_omit_missing_statistics(self):
        assert TrendSummary().values() == {}

    def test_values_include_series(self):
        summary = TrendSummary(
            min=1,
            max=2,
            avg=1.5,
            p95=2,
            time_series=(TimeSeriesPoint(time=5, value=1, tags={"k": "v"}),),
        )
        assert summary.values() == {
            "min": 1,
            "max": 2,
            "avg": 1.5,
            "p95": 2,
            "timeSeries": [{"time": 5, "value": 1, "tags": {"k": "v"}}],
        }


class TestAggregatedResult:
    def test_to_dict_shape(self):
        assert _result().to_dict() == {
            "metrics": {"http_reqs": {"type": "counter", "values": {"count": 3}}},
            "erroredUrls": [
                {
                    "url": "https://x/a",
                    "status": 500,
                    "message": "Request failed",
                    "endpoint": "a",
                    "count": 1,
                    "origin": "explicit",
                }
            ],
            "rootInfo": {"maxVirtualUsers": 4, "iterationCount": 9},
            "processedAt": "2024-05-01T12:30:15.123Z",
        }

    def test_frozen(self):
        result = _result()
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.root_info = RootInfo()  # type: ignore[misc]

    def test_metrics_mapping_is_read_only(self):
        result = _result()
        with pytest.raises(TypeError):
            result.metrics["new"] = CounterSummary()  # type: ignore[index]

    def test_source_containers_are_copied(self):
        metrics = {"http_reqs": CounterSummary(count=1)}
        errors = [ErrorRecord(url="u", status="Error", message="m", endpoint="e")]
        result = _result(metrics=metrics, errored_urls=errors)
        metrics.clear()
        errors.clear()
        assert "http_reqs" in result.metrics
        assert len(result.errored_urls) == 1
        assert isinstance(result.errored_urls, tuple)

    def test_provenance_views(self):
        explicit = ErrorRecord(url="u", status=1, message="m", endpoint="e")
        failed = ErrorRecord(
            url="u", status="500", message="m", endpoint="e", count=3, origin=ErrorOrigin.FAILED_REQUEST
        )
        result = _result(errored_urls=(explicit, failed))
        assert result.explicit_errors == (explicit,)
        assert result.failed_request_errors == (failed,)

    def test_metric_lookup(self):
        result = _result()
        assert result.metric("http_reqs") == CounterSummary(count=3)
        assert result.metric("missing") is None
