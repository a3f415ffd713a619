"""Configuration loading for LoadLens."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from loadlens._internal.errors import ConfigError

LOG_FORMATS = ("text", "json")


@dataclass(frozen=True)
class LoadLensConfig:
    """Global LoadLens configuration.

    Attributes:
        results_path: NDJSON results file produced by the load-test driver.
        report_dir: Directory the HTML report is written to.
        dashboard_host: Interface the live dashboard binds to.
        dashboard_port: Port the live dashboard listens on.
        poll_interval: Seconds between results-file change checks.
        log_format: ``text`` for rich console logs, ``json`` for one-line JSON.
    """

    results_path: Path = field(default_factory=lambda: Path("results.json"))
    report_dir: Path = field(default_factory=lambda: Path("reports"))
    dashboard_host: str = "127.0.0.1"
    dashboard_port: int = 3000
    poll_interval: float = 0.5
    log_format: str = "text"


def load_config() -> LoadLensConfig:
    """Load configuration from environment variables with defaults.

    Environment variables:
        LOADLENS_RESULTS: Results file path (default: results.json).
        LOADLENS_REPORT_DIR: Report output directory (default: reports).
        LOADLENS_HOST: Dashboard bind address (default: 127.0.0.1).
        LOADLENS_PORT: Dashboard port, falling back to PORT (default: 3000).
        LOADLENS_POLL_INTERVAL: Seconds between file checks (default: 0.5).
        LOADLENS_LOG_FORMAT: ``text`` or ``json`` (default: text).

    Returns:
        Populated LoadLensConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    port_str = os.environ.get("LOADLENS_PORT") or os.environ.get("PORT") or "3000"
    interval_str = os.environ.get("LOADLENS_POLL_INTERVAL", "0.5")

    try:
        port = int(port_str)
    except ValueError:
        msg = f"LOADLENS_PORT must be an integer, got: {port_str!r}"
        raise ConfigError(msg) from None

    if not 1 <= port <= 65535:
        msg = f"LOADLENS_PORT must be between 1 and 65535, got: {port}"
        raise ConfigError(msg)

    try:
        poll_interval = float(interval_str)
    except ValueError:
        msg = f"LOADLENS_POLL_INTERVAL must be a number, got: {interval_str!r}"
        raise ConfigError(msg) from None

    if poll_interval <= 0:
        msg = f"LOADLENS_POLL_INTERVAL must be positive, got: {poll_interval}"
        raise ConfigError(msg)

    log_format = os.environ.get("LOADLENS_LOG_FORMAT", "text").lower()
    if log_format not in LOG_FORMATS:
        msg = f"LOADLENS_LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, got: {log_format!r}"
        raise ConfigError(msg)

    return LoadLensConfig(
        results_path=Path(os.environ.get("LOADLENS_RESULTS", "results.json")),
        report_dir=Path(os.environ.get("LOADLENS_REPORT_DIR", "reports")),
        dashboard_host=os.environ.get("LOADLENS_HOST", "127.0.0.1"),
        dashboard_port=port,
        poll_interval=poll_interval,
        log_format=log_format,
    )
