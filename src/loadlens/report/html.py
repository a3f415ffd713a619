"""Static HTML summary report."""

from __future__ import annotations

import html
from datetime import datetime
from string import Template
from typing import TYPE_CHECKING

from loadlens._internal.logging import get_logger
from loadlens.metrics.models import CounterSummary, RateSummary, TrendSummary

if TYPE_CHECKING:
    from pathlib import Path

    from loadlens.metrics.models import AggregatedResult, ErrorRecord

logger = get_logger("report.html")

REPORT_FILENAME = "report.html"

_REPORT_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Load Test Report</title>
  <style>
    body { font-family: Arial, sans-serif; line-height: 1.6; max-width: 1200px; margin: 0 auto; padding: 20px; color: #333; }
    h1, h2, h3 { color: #0066cc; }
    .summary { background-color: #f5f5f5; border-radius: 5px; padding: 20px; margin-bottom: 20px; }
    .metrics { display: grid; grid-template-columns: repeat(auto-fill, minmax(300px, 1fr)); gap: 20px; margin-bottom: 20px; }
    .metric-card { background-color: #fff; border: 1px solid #ddd; border-radius: 5px; padding: 15px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
    .metric-value { font-size: 24px; font-weight: bold; color: #0066cc; }
    .success { color: #28a745; }
    .warning { color: #ffc107; }
    .danger { color: #dc3545; }
    table { width: 100%; border-collapse: collapse; margin-bottom: 20px; }
    th, td { padding: 12px 15px; border-bottom: 1px solid #ddd; text-align: left; }
    th { background-color: #f8f8f8; }
  </style>
</head>
<body>
  <h1>Load Test Report</h1>
  <p>Report generated: $generated_at</p>

  <div class="summary">
    <h2>Summary</h2>
    <p>Peak virtual users: $max_vus &middot; Iterations completed: $iterations</p>
  </div>

  <div class="metrics">
    <div class="metric-card"><h3>Total Requests</h3><div class="metric-value">$http_reqs</div></div>
    <div class="metric-card"><h3>Failed Requests</h3><div class="metric-value $failed_class">$http_failed</div></div>
    <div class="metric-card"><h3>Checks Success Rate</h3><div class="metric-value $checks_class">$checks_rate%</div></div>
    <div class="metric-card"><h3>Average Response Time</h3><div class="metric-value">$avg_duration ms</div></div>
    <div class="metric-card"><h3>95th Percentile</h3><div class="metric-value">$p95_duration ms</div></div>
    <div class="metric-card"><h3>Max Response Time</h3><div class="metric-value">$max_duration ms</div></div>
  </div>

  <h2>Failed Request URLs</h2>
  $errored_urls

  <h2>Checks</h2>
  <table>
    <tr><th>Metric</th><th>Value</th></tr>
    <tr><td>Passed Checks</td><td>$checks_passes</td></tr>
    <tr><td>Failed Checks</td><td>$checks_fails</td></tr>
    <tr><td>Success Rate</td><td>$checks_rate%</td></tr>
  </table>

  <h2>HTTP Request Details</h2>
  <table>
    <tr><th>Metric</th><th>Value</th></tr>
    <tr><td>Total Requests</td><td>$http_reqs</td></tr>
    <tr><td>Failed Requests</td><td>$http_failed</td></tr>
    <tr><td>Average Duration</td><td>$avg_duration ms</td></tr>
    <tr><td>95th Percentile</td><td>$p95_duration ms</td></tr>
    <tr><td>Maximum Duration</td><td>$max_duration ms</td></tr>
  </table>

  <h2>All Metrics</h2>
  <table>
    <tr><th>Metric</th><th>Type</th><th>Values</th></tr>
$metric_rows
  </table>
</body>
</html>
""")


def _esc(value: object) -> str:
    return html.escape(str(value))


def _fixed(value: float | None) -> str:
    """Two-decimal rendering; missing statistics render as 0."""
    return f"{value:.2f}" if value is not None else "0"


def _checks_class(rate: float) -> str:
    if rate >= 0.95:
        return "success"
    if rate >= 0.9:
        return "warning"
    return "danger"


def _errored_urls_table(errors: tuple[ErrorRecord, ...]) -> str:
    if not errors:
        return "<p>No failed requests detected.</p>"
    rows = "\n".join(
        f"    <tr><td>{_esc(e.endpoint)}</td><td>{_esc(e.url)}</td>"
        f"<td>{_esc(e.status)}</td><td>{e.count}</td></tr>"
        for e in errors
    )
    return (
        "<table>\n"
        "    <tr><th>Endpoint</th><th>URL</th><th>Status</th><th>Count</th></tr>\n"
        f"{rows}\n"
        "  </table>"
    )


def _metric_rows(result: AggregatedResult) -> str:
    rows = []
    for name, summary in result.metrics.items():
        values = {k: v for k, v in summary.values().items() if k != "timeSeries"}
        rendered = ", ".join(
            f"{key}={value:.2f}" if isinstance(value, float) else f"{key}={value}"
            for key, value in values.items()
        )
        rows.append(
            f"    <tr><td>{_esc(name)}</td><td>{summary.type.value}</td><td>{_esc(rendered)}</td></tr>"
        )
    return "\n".join(rows)


def render_html_report(result: AggregatedResult, *, generated_at: datetime | None = None) -> str:
    """Render an aggregated result as a self-contained HTML page.

    Headline figures come from the standard k6 metrics: ``http_reqs``
    (counter), ``http_req_failed`` and ``checks`` (rates) and
    ``http_req_duration`` (trend). Missing metrics render as zero.

    Args:
        result: Snapshot to render.
        generated_at: Timestamp shown in the header. Defaults to the
            snapshot's ``processed_at`` in local time.

    Returns:
        The HTML document.
    """
    http_reqs = result.metric("http_reqs")
    http_failed = result.metric("http_req_failed")
    duration = result.metric("http_req_duration")
    checks = result.metric("checks")

    reqs_count = http_reqs.count if isinstance(http_reqs, CounterSummary) else 0
    failed_count = http_failed.passes if isinstance(http_failed, RateSummary) else 0
    checks_summary = checks if isinstance(checks, RateSummary) else RateSummary()
    duration_summary = duration if isinstance(duration, TrendSummary) else TrendSummary()

    stamp = generated_at or result.processed_at.astimezone()

    return _REPORT_TEMPLATE.substitute(
        generated_at=_esc(stamp.strftime("%Y-%m-%d %H:%M:%S")),
        max_vus=result.root_info.max_virtual_users,
        iterations=result.root_info.iteration_count,
        http_reqs=_esc(reqs_count),
        http_failed=failed_count,
        failed_class="danger" if failed_count > 0 else "success",
        checks_rate=f"{checks_summary.rate * 100:.2f}",
        checks_class=_checks_class(checks_summary.rate),
        checks_passes=checks_summary.passes,
        checks_fails=checks_summary.fails,
        avg_duration=_fixed(duration_summary.avg),
        p95_duration=_fixed(duration_summary.p95),
        max_duration=_fixed(duration_summary.max),
        errored_urls=_errored_urls_table(result.errored_urls),
        metric_rows=_metric_rows(result),
    )


def write_html_report(result: AggregatedResult, report_dir: Path) -> Path:
    """Render the report and write it to ``<report_dir>/report.html``.

    Args:
        result: Snapshot to render.
        report_dir: Output directory; created if missing.

    Returns:
        Path of the written file.
    """
    report_dir.mkdir(parents=True, exist_ok=True)
    target = report_dir / REPORT_FILENAME
    target.write_text(render_html_report(result), encoding="utf-8")
    logger.info("HTML report written to %s", target, extra={"path": target})
    return target
