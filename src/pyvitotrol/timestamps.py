"""Vitodata timestamp handling.

The service exchanges timestamps as ``YYYY-MM-DD HH:MM:SS`` wall-clock
strings without any offset; they are interpreted in the local timezone.
"""

from __future__ import annotations

import re
from datetime import datetime

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


def parse_timestamp(value: str) -> datetime:
    """Parse a Vitodata timestamp into an aware local datetime.

    Args:
        value: Timestamp text, e.g. ``"2016-10-30 12:13:14"``

    Returns:
        Timezone-aware datetime in the local timezone

    Raises:
        ValueError: If the text does not match the wire pattern
    """
    if not _TIMESTAMP_RE.match(value):
        raise ValueError(f"invalid timestamp {value!r}")
    return datetime.strptime(value, TIMESTAMP_FORMAT).astimezone()


def format_timestamp(value: datetime) -> str:
    """Format a datetime as local Vitodata wall-clock text."""
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime(TIMESTAMP_FORMAT)
