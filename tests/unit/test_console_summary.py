"""Tests for the Rich console summary."""

from __future__ import annotations

import io
from datetime import UTC, datetime

from rich.console import Console

from loadlens.metrics.aggregator import aggregate
from loadlens.metrics.models import AggregatedResult, RootInfo
from loadlens.report.console import print_summary


def _render(result: AggregatedResult) -> str:
    buffer = io.StringIO()
    print_summary(result, Console(file=buffer, width=200, color_system=None))
    return buffer.getvalue()


class TestPrintSummary:
    def test_sections_and_values(self, k6_results_text: str):
        output = _render(aggregate(k6_results_text))
        assert "HTTP Requests" in output
        assert "Checks" in output
        assert "Load Testing" in output
        assert "125.00ms" in output
        assert "75.00%" in output

    def test_failed_request_lines(self, k6_results_text: str):
        output = _render(aggregate(k6_results_text))
        assert "[login] https://api.example.com/login - Status: 401 (1 occurrences)" in output
        assert "[login] https://api.example.com/login - Status: 500 (1 occurrences)" in output

    def test_empty_result(self):
        result = AggregatedResult(metrics={}, errored_urls=(), root_info=RootInfo(), processed_at=datetime.now(UTC))
        output = _render(result)
        assert "Failed Request URLs" not in output
        assert "0ms" in output
