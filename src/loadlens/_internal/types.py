"""Shared type aliases for LoadLens."""

from __future__ import annotations

from typing import Any

# A decoded JSON object.
JsonDict = dict[str, Any]

# Status reported for a failed request: HTTP code, error code, or a label.
ErrorStatus = str | int | float | None
