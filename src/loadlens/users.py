"""Conversion of tab-separated test-user credentials to JSON."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from loadlens._internal.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

logger = get_logger("users")

USER_FIELDS = ("email", "password", "companyName")


def convert_users(text: str) -> list[dict[str, str]]:
    """Parse a ``users.txt`` export into user objects.

    The first line is a header and is skipped. Each following line holds
    email, password and company name separated by tabs; missing trailing
    columns leave their keys out and extra columns are ignored.

    Args:
        text: Full file content.

    Returns:
        One dict per data line, keyed by ``email``, ``password`` and
        ``companyName``.
    """
    lines = text.strip().split("\n")
    users: list[dict[str, str]] = []
    for line in lines[1:]:
        columns = line.rstrip("\r").split("\t")
        users.append(dict(zip(USER_FIELDS, columns, strict=False)))
    return users


def convert_users_file(source: Path, target: Path) -> int:
    """Convert ``source`` (TSV) into ``target`` (indented JSON array).

    Args:
        source: Tab-separated users file.
        target: JSON file to write.

    Returns:
        Number of users written.
    """
    users = convert_users(source.read_text(encoding="utf-8"))
    target.write_text(json.dumps(users, indent=2), encoding="utf-8")
    logger.debug("Converted %d user(s) from %s", len(users), source, extra={"path": target})
    return len(users)
