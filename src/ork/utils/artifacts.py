"""Collision-free artifact naming."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def artifact_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with ':' and '.' replaced by '-'.

    >>> artifact_timestamp(datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))
    '2026-01-02T03-04-05-678Z'
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


def unique_path(directory: Path, stem: str, suffix: str = "") -> Path:
    """Return ``directory/stem+suffix``, numbering the stem until nothing exists there."""
    candidate = directory / f"{stem}{suffix}"
    counter = 1
    while candidate.exists():
        candidate = directory / f"{stem}-{counter}{suffix}"
        counter += 1
    return candidate
