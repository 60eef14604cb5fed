"""
Timestamp helpers shared by the stores and projections.
Timestamps are kept as ISO-8601 strings in UTC.
"""
from datetime import datetime, date, timezone
from typing import Union

from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime, date]) -> datetime:
    """
    Parse an ISO-8601 string (or date/datetime) into an aware UTC datetime

    Args:
        value: ISO string such as '2024-03-22T11:30:00Z', a datetime or a date

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        ValueError: If the string is not a recognisable timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = date_parser.isoparse(value.strip())
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: Union[str, datetime, date, None]):
    """Normalize a timestamp to an ISO-8601 UTC string (None passes through)"""
    if value is None:
        return None
    return parse_timestamp(value).isoformat()
