"""LoadLens — aggregate k6 NDJSON telemetry into reports and a live dashboard."""

from __future__ import annotations

from loadlens.metrics.aggregator import aggregate, aggregate_file
from loadlens.metrics.models import (
    AggregatedResult,
    CounterSummary,
    ErrorOrigin,
    ErrorRecord,
    GaugeSummary,
    MetricType,
    RateSummary,
    RootInfo,
    TrendSummary,
)

__version__ = "0.1.0"

__all__ = [
    "AggregatedResult",
    "CounterSummary",
    "ErrorOrigin",
    "ErrorRecord",
    "GaugeSummary",
    "MetricType",
    "RateSummary",
    "RootInfo",
    "TrendSummary",
    "aggregate",
    "aggregate_file",
]
