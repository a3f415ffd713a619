"""Shared test fixtures for LoadLens test suite."""

from __future__ import annotations

import json
import logging
import socket
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


@pytest.fixture(autouse=True)
def _reset_loadlens_logger() -> Iterator[None]:
    """Undo ``setup_logging`` so caplog sees records in every test."""
    yield
    logger = logging.getLogger("loadlens")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# =============================================================================
# Network utilities
# =============================================================================


@pytest.fixture
def free_port() -> int:
    """An available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# NDJSON sample data
# =============================================================================


def _line(record: dict[str, Any]) -> str:
    return json.dumps(record)


def _k6_records() -> list[dict[str, Any]]:
    """A small but realistic k6 ``--out json`` stream."""
    records: list[dict[str, Any]] = [
        {"type": "Metric", "metric": "http_reqs", "data": {"type": "counter", "contains": "default"}},
        {"type": "Metric", "metric": "http_req_duration", "data": {"type": "trend", "contains": "time"}},
        {"type": "Metric", "metric": "http_req_failed", "data": {"type": "rate", "contains": "default"}},
        {"type": "Metric", "metric": "checks", "data": {"type": "rate", "contains": "default"}},
        {"type": "Metric", "metric": "vus_max", "data": {"type": "gauge", "contains": "default"}},
        {"type": "Metric", "metric": "iterations", "data": {"type": "counter", "contains": "default"}},
    ]
    for i, duration in enumerate((120.0, 80.0, 200.0, 100.0)):
        time = f"2024-05-01T10:00:0{i}.000Z"
        failed = 1 if i == 2 else 0
        url = "https://api.example.com/login" if i % 2 == 0 else "https://api.example.com/profile"
        tags = {"url": url, "name": "login" if i % 2 == 0 else "profile", "status": "500" if failed else "200"}
        records.extend(
            [
                {"type": "Point", "metric": "http_reqs", "data": {"time": time, "value": 1, "tags": tags}},
                {"type": "Point", "metric": "http_req_duration", "data": {"time": time, "value": duration, "tags": tags}},
                {"type": "Point", "metric": "http_req_failed", "data": {"time": time, "value": failed, "tags": tags}},
                {"type": "Point", "metric": "checks", "data": {"time": time, "value": 1 - failed, "tags": {}}},
            ]
        )
    records.extend(
        [
            {"type": "Point", "metric": "vus_max", "data": {"time": "2024-05-01T10:00:00Z", "value": 10}},
            {"type": "Point", "metric": "iterations", "data": {"time": "2024-05-01T10:00:01Z", "value": 1}},
            {"type": "Point", "metric": "iterations", "data": {"time": "2024-05-01T10:00:03Z", "value": 1}},
            {
                "type": "Error",
                "metric": "login_errors",
                "data": {
                    "error_code": 401,
                    "error_message": "Invalid credentials",
                    "request_url": "https://api.example.com/login",
                    "endpoint": "login",
                },
            },
        ]
    )
    return records


@pytest.fixture
def k6_results_text() -> str:
    """NDJSON text of a short k6 run."""
    return "\n".join(_line(r) for r in _k6_records()) + "\n"


@pytest.fixture
def results_file(tmp_path: Path, k6_results_text: str) -> Path:
    """The sample k6 run written to ``results.json``."""
    path = tmp_path / "results.json"
    path.write_text(k6_results_text)
    return path
