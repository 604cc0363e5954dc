"""
Shared helpers for model serialization.

All timestamps handled by YarnStash are timezone-aware UTC datetimes. They
are persisted as ISO-8601 strings and parsed back with ``parse_datetime``.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional, Union


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """Parse an ISO string, date or datetime into an aware UTC datetime.

    Naive values are assumed to already be UTC. Date-only values map to
    midnight UTC.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        if len(text) == 10:
            d = date.fromisoformat(text)
            dt = datetime(d.year, d.month, d.day)
        else:
            dt = datetime.fromisoformat(text)

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)
