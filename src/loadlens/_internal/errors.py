"""Exceptions raised by LoadLens."""

from __future__ import annotations


class LoadLensError(Exception):
    """Root of the LoadLens exception tree.

    The CLI catches this type, prints the message and exits with status 1.
    """


class ConfigError(LoadLensError):
    """An environment variable holds a value LoadLens cannot use.

    Examples:
        - ``LOADLENS_PORT=http`` (not an integer).
        - ``LOADLENS_POLL_INTERVAL=0`` (not positive).
    """


class AggregationError(LoadLensError):
    """Raised when an aggregation pass cannot complete.

    A pass either produces a full result or raises this error; partial
    results are never returned. Individual malformed lines are not errors.

    Examples:
        - The results file cannot be read.
        - The raw input is not valid UTF-8.
    """


class ResultsNotFoundError(AggregationError):
    """Raised when the results file does not exist (yet)."""
