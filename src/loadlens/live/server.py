"""aiohttp server for the live dashboard."""

from __future__ import annotations

from string import Template
from typing import TYPE_CHECKING

from aiohttp import WSMsgType, web

from loadlens._internal.logging import get_logger
from loadlens.live.broadcaster import RESULTS_EVENT, ResultsBroadcaster
from loadlens.live.watcher import ResultsWatcher

if TYPE_CHECKING:
    from loadlens._internal.config import LoadLensConfig

logger = get_logger("live.server")

SOCKET_PATH = "/api/socketio"
RESULTS_PATH = "/api/results"

BROADCASTER_KEY = web.AppKey("broadcaster", ResultsBroadcaster)
WATCHER_KEY = web.AppKey("watcher", ResultsWatcher)

_PAGE_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>LoadLens Live Dashboard</title>
  <style>
    body { font-family: Arial, sans-serif; max-width: 1200px; margin: 0 auto; padding: 20px; color: #333; }
    h1 { color: #0066cc; }
    .status { color: #888; }
    table { width: 100%; border-collapse: collapse; }
    th, td { padding: 8px 12px; border-bottom: 1px solid #ddd; text-align: left; }
  </style>
</head>
<body>
  <h1>Live Load Test Dashboard</h1>
  <p class="status" id="status">Waiting for test data...</p>
  <table><thead><tr><th>Metric</th><th>Type</th><th>Values</th></tr></thead><tbody id="metrics"></tbody></table>
  <h2>Failed Request URLs</h2>
  <table><thead><tr><th>Endpoint</th><th>URL</th><th>Status</th><th>Count</th></tr></thead><tbody id="errors"></tbody></table>
  <script>
    const cell = (text) => { const td = document.createElement("td"); td.textContent = text; return td; };
    const row = (cells) => { const tr = document.createElement("tr"); cells.forEach((c) => tr.appendChild(cell(c))); return tr; };
    function render(data) {
      document.getElementById("status").textContent =
        "Updated " + data.processedAt + " | max VUs " + data.rootInfo.maxVirtualUsers +
        " | iterations " + data.rootInfo.iterationCount;
      const metrics = document.getElementById("metrics");
      metrics.replaceChildren(...Object.entries(data.metrics).map(([name, m]) => {
        const { timeSeries, ...values } = m.values;
        return row([name, m.type, JSON.stringify(values)]);
      }));
      document.getElementById("errors").replaceChildren(
        ...data.erroredUrls.map((e) => row([e.endpoint, e.url, e.status, e.count])));
    }
    const proto = location.protocol === "https:" ? "wss://" : "ws://";
    const socket = new WebSocket(proto + location.host + "$socket_path");
    socket.onmessage = (msg) => {
      const update = JSON.parse(msg.data);
      if (update.event === "$event") render(update.data);
    };
    socket.onclose = () => { document.getElementById("status").textContent = "Disconnected"; };
  </script>
</body>
</html>
""")


async def _index(request: web.Request) -> web.Response:
    page = _PAGE_TEMPLATE.substitute(socket_path=SOCKET_PATH, event=RESULTS_EVENT)
    return web.Response(text=page, content_type="text/html")


async def _latest_results(request: web.Request) -> web.Response:
    """Return the cached snapshot, or 503 while awaiting data."""
    latest = request.app[BROADCASTER_KEY].cache.get()
    if latest is None:
        return web.json_response({"status": "awaiting data"}, status=503)
    return web.json_response(latest.to_dict())


async def _socket(request: web.Request) -> web.WebSocketResponse:
    """Push channel: sends the cached snapshot, then every new one."""
    broadcaster = request.app[BROADCASTER_KEY]
    ws = web.WebSocketResponse(heartbeat=30.0)
    await ws.prepare(request)

    await broadcaster.subscribe(ws)
    logger.info("Client connected", extra={"subscribers": broadcaster.subscriber_count})
    try:
        # Subscribers never send anything meaningful; drain until close.
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                logger.warning("Websocket closed with exception: %s", ws.exception())
    finally:
        broadcaster.unsubscribe(ws)
        logger.info("Client disconnected", extra={"subscribers": broadcaster.subscriber_count})
    return ws


async def _start_watcher(app: web.Application) -> None:
    app[WATCHER_KEY].start()


async def _close_subscribers(app: web.Application) -> None:
    await app[BROADCASTER_KEY].close()


async def _stop_watcher(app: web.Application) -> None:
    await app[WATCHER_KEY].stop()


def create_app(
    config: LoadLensConfig,
    *,
    broadcaster: ResultsBroadcaster | None = None,
) -> web.Application:
    """Build the dashboard application.

    Args:
        config: Supplies the results path and poll interval.
        broadcaster: Push channel to use; a new one is created if omitted.

    Returns:
        An aiohttp application whose startup begins watching the file.
    """
    broadcaster = broadcaster if broadcaster is not None else ResultsBroadcaster()
    watcher = ResultsWatcher(
        config.results_path,
        broadcaster.publish,
        poll_interval=config.poll_interval,
        include_time_series=True,
    )

    app = web.Application()
    app[BROADCASTER_KEY] = broadcaster
    app[WATCHER_KEY] = watcher
    app.router.add_get("/", _index)
    app.router.add_get(RESULTS_PATH, _latest_results)
    app.router.add_get(SOCKET_PATH, _socket)
    app.on_startup.append(_start_watcher)
    app.on_shutdown.append(_close_subscribers)
    app.on_cleanup.append(_stop_watcher)
    return app


def run_dashboard(config: LoadLensConfig) -> None:
    """Serve the dashboard until interrupted.

    Args:
        config: Results path, bind address, port and poll interval.
    """
    app = create_app(config)
    logger.info(
        "Ready on http://%s:%d, monitoring %s for changes",
        config.dashboard_host,
        config.dashboard_port,
        config.results_path,
    )
    web.run_app(app, host=config.dashboard_host, port=config.dashboard_port, print=None)
