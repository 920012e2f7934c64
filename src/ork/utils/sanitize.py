"""Redaction of credentials and local paths in captured agent output."""

from __future__ import annotations

import os
import re

_SECRET_PATTERNS: list[tuple[str, str]] = [
    (r"sk-[a-zA-Z0-9_-]{20,}", "[REDACTED_KEY]"),
    (r"gh[pousr]_[A-Za-z0-9]{20,}", "[REDACTED_KEY]"),
    (r"Bearer\s+\S+", "Bearer [REDACTED]"),
    (r"Authorization:\s*\S+", "Authorization: [REDACTED]"),
    # VERCEL_TOKEN=..., FLY_API_TOKEN: ..., EXPO_TOKEN=...
    (r"\b([A-Z][A-Z0-9_]*(?:TOKEN|SECRET|API_KEY|PASSWORD))(\s*[=:]\s*)\S+", r"\1\2[REDACTED]"),
]


def sanitize_error(message: str) -> str:
    """Redact tokens and the user's home directory from an error or log text."""
    if not message:
        return message

    sanitized = message
    for pattern, replacement in _SECRET_PATTERNS:
        sanitized = re.sub(pattern, replacement, sanitized)

    home = os.environ.get("HOME") or os.environ.get("USERPROFILE") or ""
    if home and home != "/":
        sanitized = sanitized.replace(home, "[USER_HOME]")

    return sanitized
