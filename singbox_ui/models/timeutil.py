"""
Timestamp parsing for values produced by the manager service.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

# RFC 3339 fractions are 1-9 digits; fromisoformat wants exactly 6 before 3.11
_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an RFC 3339 timestamp into an aware datetime.

    Args:
        value: Timestamp string (``Z`` suffix and nanoseconds accepted),
               an existing datetime, or a Unix epoch number

    Returns:
        Timezone-aware datetime (naive inputs are taken as UTC)

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str) and value:
        text = value.strip()
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        text = _FRACTION_RE.sub(_normalize_fraction, text, count=1)
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _normalize_fraction(match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_optional_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp, returning None for missing or malformed values."""
    if value in (None, ''):
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        return None
