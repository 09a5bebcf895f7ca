"""
Timestamp utilities for consistent UTC time handling across the journal.
"""

import time
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def current_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO-8601 in UTC.

    Args:
        value: datetime to serialize (naive values are taken as UTC)

    Returns:
        ISO-8601 string, or None when value is None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_iso(value) -> Optional[datetime]:
    """Parse an ISO-8601 string (a trailing 'Z' is accepted) into an aware UTC datetime.

    Args:
        value: ISO string, datetime or None

    Returns:
        Aware datetime, or None when value is empty

    Raises:
        ValueError: If the string is not ISO-8601
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
