"""Timestamp parsing for session log records."""

from __future__ import annotations

import re
from datetime import UTC, datetime

_LAYOUTS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
)
# strptime's %f accepts at most 6 digits; logs may carry nanoseconds.
_LONG_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: object) -> datetime | None:
    """Parse a log timestamp into an aware UTC datetime, or ``None``."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    text = _LONG_FRACTION_RE.sub(r"\1", text, count=1)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    for layout in _LAYOUTS:
        try:
            parsed = datetime.strptime(text, layout)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    return None


def format_timestamp(value: datetime | None) -> str:
    """Render a timestamp as UTC ISO-8601 with a ``Z`` suffix."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
