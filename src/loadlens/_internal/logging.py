"""Logging for LoadLens.

Everything logs under the ``loadlens`` namespace. The CLI installs one
stderr handler on that namespace: plain text for people, or one JSON object
per line when logs are collected by a machine (``LOADLENS_LOG_FORMAT=json``).
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

ROOT_LOGGER = "loadlens"

# ``extra=`` keys copied into JSON log lines when present on a record.
_CONTEXT_KEYS = ("path", "line_number", "subscribers")
_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"


class _JsonFormatter(logging.Formatter):
    """Render a record as one JSON object.

    Keys: timestamp, level, logger, message, any aggregation context passed
    through ``extra=`` (source path, line number, subscriber count) and the
    formatted traceback when one is attached.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({key: str(getattr(record, key)) for key in _CONTEXT_KEYS if hasattr(record, key)})
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _make_handler(*, json_format: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(level: int = logging.INFO, *, json_format: bool = False) -> logging.Logger:
    """Install the LoadLens log handler and return the namespace logger.

    Only the first call adds a handler; later calls change the level of the
    logger and of the handler it already has.

    Args:
        level: Threshold for ``loadlens.*`` records.
        json_format: Emit one JSON object per line instead of plain text.

    Returns:
        The ``loadlens`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    if not logger.handlers:
        logger.addHandler(_make_handler(json_format=json_format))
        # Records would otherwise be printed again by the root logger.
        logger.propagate = False

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


def level_for(*, verbose: bool) -> int:
    """Map the CLI ``--verbose`` flag to a logging level."""
    return logging.DEBUG if verbose else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return ``loadlens.<name>``, e.g. ``get_logger("live.watcher")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
